"""
SQL File Parser - Discovers stored procedure files and extracts their flow.

Each *.sql file is expected to hold one procedure definition. The procedure
name is read from the CREATE/ALTER PROCEDURE header, falling back to the file
name when the header cannot be located.
"""

from collections import defaultdict
from pathlib import Path
from typing import Dict

from .sql_flow_parser import SQLFlowParser


class SQLParser:
    """Discovers *.sql files under a directory and returns per-file flow data."""

    def __init__(self):
        self.flow_parser = SQLFlowParser()

    def parse_file(self, sql_path: str) -> Dict:
        """
        Parse a single SQL file.

        Returns dict with keys:
            procedure_name : str  – header name, or the filename stem
            file_path      : str
            line_count     : int
            steps          : list – flow steps (see SQLFlowParser.parse)
            tables         : list – sorted unique tables touched by any step
            error          : str  – only present on failure
        """
        sql_path = Path(sql_path)
        result = {
            'procedure_name': sql_path.stem,
            'file_path': str(sql_path),
            'line_count': 0,
            'steps': [],
            'tables': [],
        }
        if not sql_path.exists():
            result['error'] = f'File not found: {sql_path}'
            return result
        try:
            with open(sql_path, 'r', encoding='utf-8', errors='ignore') as f:
                content = f.read()
        except OSError as exc:
            result['error'] = f'Error reading file: {exc}'
            return result

        steps = self.flow_parser.parse(content)
        result['procedure_name'] = self.flow_parser.extract_procedure_name(content) or sql_path.stem
        result['line_count'] = len(content.splitlines())
        result['steps'] = steps
        result['tables'] = sorted({table for step in steps for table in step['tables']})
        return result

    def parse_directory(self, directory: str) -> Dict[str, Dict]:
        """
        Find all *.sql files under *directory* (recursive) and parse each.

        Returns dict: procedure_name -> parse_file() result.
        Files with errors are excluded.
        """
        directory = Path(directory)
        results: Dict[str, Dict] = {}
        if not directory.exists():
            print(f"Warning: Directory not found: {directory}")
            return results

        sql_files = sorted(directory.rglob('*.sql'))
        print(f"Found {len(sql_files)} SQL files in {directory}")

        for sql_file in sql_files:
            result = self.parse_file(str(sql_file))
            if 'error' in result:
                continue
            name = result['procedure_name']
            if name in results:
                print(f"[WARN] {name} declared in both {results[name]['file_path']} and {sql_file}; keeping the latter")
            results[name] = result

        return results

    def get_summary(self, parsed_results: Dict[str, Dict]) -> Dict:
        """
        Generate a summary of parsed procedures.

        Args:
            parsed_results: Dictionary of parse_file() results

        Returns:
            Summary statistics
        """
        total_steps = 0
        step_types = defaultdict(int)
        all_tables = set()
        errors = []

        for name, result in parsed_results.items():
            if 'error' in result:
                errors.append({'procedure': name, 'error': result['error']})
                continue
            total_steps += len(result.get('steps', []))
            for step in result.get('steps', []):
                step_types[step['type']] += 1
            all_tables.update(result.get('tables', []))

        return {
            'total_procedures': len(parsed_results),
            'total_steps': total_steps,
            'step_types': dict(step_types),
            'total_tables': len(all_tables),
            'unique_tables': sorted(all_tables),
            'errors': errors,
        }
