"""
SQL File Parser Tests - file discovery, per-file metadata and summaries.
"""

from parsers.sql_parser import SQLParser


class TestParseFile:

    def test_procedure_file(self, sql_dir):
        result = SQLParser().parse_file(str(sql_dir / "web" / "seek_cliente.sql"))
        assert 'error' not in result
        assert result['procedure_name'] == 'dbo.WEB_Seek_Cliente'
        assert result['line_count'] == 24
        assert len(result['steps']) == 8
        assert result['tables'] == ['dbo.Auditoria', 'dbo.Cliente', 'dbo.Orden', 'dbo.Temp']

    def test_headerless_file_uses_stem(self, sql_dir):
        result = SQLParser().parse_file(str(sql_dir / "snippet.sql"))
        assert result['procedure_name'] == 'snippet'
        assert result['steps'] == []
        assert result['tables'] == []

    def test_missing_file(self, tmp_path):
        result = SQLParser().parse_file(str(tmp_path / "missing.sql"))
        assert result['error'].startswith('File not found')
        assert result['steps'] == []


class TestParseDirectory:

    def test_recursive_discovery(self, sql_dir, capsys):
        results = SQLParser().parse_directory(str(sql_dir))
        assert sorted(results) == ['dbo.WEB_Seek_Cliente', 'snippet']
        assert 'Found 2 SQL files' in capsys.readouterr().out

    def test_missing_directory(self, tmp_path, capsys):
        assert SQLParser().parse_directory(str(tmp_path / "nowhere")) == {}
        assert 'Directory not found' in capsys.readouterr().out


class TestSummary:

    def test_summary(self, sql_dir):
        parser = SQLParser()
        results = parser.parse_directory(str(sql_dir))
        results['broken'] = {'procedure_name': 'broken', 'error': 'File not found: broken.sql'}

        summary = parser.get_summary(results)
        assert summary['total_procedures'] == 3
        assert summary['total_steps'] == 8
        assert summary['step_types']['select'] == 1
        assert summary['step_types']['params'] == 1
        assert summary['total_tables'] == 4
        assert summary['unique_tables'] == ['dbo.Auditoria', 'dbo.Cliente', 'dbo.Orden', 'dbo.Temp']
        assert summary['errors'] == [{'procedure': 'broken', 'error': 'File not found: broken.sql'}]

    def test_duplicate_procedure_name_warns_and_keeps_later_file(self, sql_dir, capsys):
        (sql_dir / "zz_copy.sql").write_text(
            "CREATE PROCEDURE dbo.WEB_Seek_Cliente AS DELETE FROM dbo.Temp\n", encoding="utf-8")
        results = SQLParser().parse_directory(str(sql_dir))

        out = capsys.readouterr().out
        assert '[WARN] dbo.WEB_Seek_Cliente declared in both' in out
        assert results['dbo.WEB_Seek_Cliente']['file_path'].endswith('zz_copy.sql')
        assert results['dbo.WEB_Seek_Cliente']['tables'] == ['dbo.Temp']
