"""
CLI Tests - build_flow_graph.main() end to end on temporary files.
"""

import json

import pytest

import build_flow_graph


@pytest.fixture
def proc_file(sql_dir):
    return sql_dir / "web" / "seek_cliente.sql"


class TestSingleFile:

    def test_json_to_stdout(self, proc_file, capsys):
        build_flow_graph.main([str(proc_file)])
        body = json.loads(capsys.readouterr().out)
        assert body['spName'] == 'dbo.WEB_Seek_Cliente'
        assert len(body['steps']) == 8
        assert body['metadata']['total_nodes'] == 15

    def test_steps_only(self, proc_file, capsys):
        build_flow_graph.main([str(proc_file), '--steps-only'])
        steps = json.loads(capsys.readouterr().out)
        assert [s['type'] for s in steps][:2] == ['params', 'if']

    def test_name_override_changes_labels(self, proc_file, capsys):
        build_flow_graph.main([str(proc_file), '--name', 'WEB_List_Cliente'])
        body = json.loads(capsys.readouterr().out)
        select_node = next(n for n in body['nodes'] if n['id'] == 'step_4')
        assert select_node['data']['subLabel'] == 'Obtener de dbo.Cliente'

    def test_mermaid_to_file(self, proc_file, tmp_path, capsys):
        output = tmp_path / "out" / "cliente.mmd"
        build_flow_graph.main([str(proc_file), '--format', 'mermaid', '-o', str(output)])
        assert output.read_text(encoding='utf-8').startswith('graph TD\n')
        assert '[OK]' in capsys.readouterr().out


class TestDirectory:

    def test_one_file_per_procedure(self, sql_dir, tmp_path, capsys):
        output_dir = tmp_path / "flows"
        build_flow_graph.main(['--sql-dir', str(sql_dir), '-o', str(output_dir), '--summary'])

        written = sorted(p.name for p in output_dir.iterdir())
        assert written == ['dbo.WEB_Seek_Cliente.json', 'snippet.json']
        snippet = json.loads((output_dir / 'snippet.json').read_text(encoding='utf-8'))
        assert snippet['steps'] == []
        assert 'FLOW SUMMARY' in capsys.readouterr().out

    def test_file_and_directory_declaring_same_procedure_warns(self, sql_dir, proc_file, tmp_path, capsys):
        output_dir = tmp_path / "flows"
        build_flow_graph.main([str(proc_file), '--sql-dir', str(sql_dir), '-o', str(output_dir)])

        assert '[WARN] dbo.WEB_Seek_Cliente declared in both' in capsys.readouterr().out
        assert sorted(p.name for p in output_dir.iterdir()) == ['dbo.WEB_Seek_Cliente.json', 'snippet.json']


class TestErrors:

    def test_no_input(self, capsys):
        with pytest.raises(SystemExit) as exc:
            build_flow_graph.main([])
        assert exc.value.code == 1
        assert 'At least one input source' in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            build_flow_graph.main([str(tmp_path / 'missing.sql')])
        assert exc.value.code == 1
        assert 'File not found' in capsys.readouterr().out

    def test_name_with_directory(self, sql_dir):
        with pytest.raises(SystemExit) as exc:
            build_flow_graph.main(['--sql-dir', str(sql_dir), '--name', 'x'])
        assert exc.value.code == 1

    def test_missing_directory(self, tmp_path):
        with pytest.raises(SystemExit):
            build_flow_graph.main(['--sql-dir', str(tmp_path / 'nowhere')])


class TestConfigDefaults:

    def test_config_fills_missing_arguments(self, tmp_path, sql_dir):
        config_path = tmp_path / 'config.json'
        config_path.write_text(json.dumps({'sql_dir': str(sql_dir), 'format': 'mermaid', '_x': 1}), encoding='utf-8')

        args = build_flow_graph.parse_arguments([])
        build_flow_graph.apply_config_defaults(args, config_path)
        assert args.sql_dir == str(sql_dir)
        assert args.format == 'mermaid'
        assert args.output is None

    def test_command_line_wins(self, tmp_path):
        config_path = tmp_path / 'config.json'
        config_path.write_text(json.dumps({'format': 'mermaid', 'sql_dir': 'procs'}), encoding='utf-8')

        args = build_flow_graph.parse_arguments(['a.sql', '--format', 'json'])
        build_flow_graph.apply_config_defaults(args, config_path)
        assert args.format == 'json'
        assert args.sql_dir is None
