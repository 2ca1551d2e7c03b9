"""
SQL Flow Parser - Extracts the control-flow steps of a T-SQL stored procedure

Produces an ordered list of steps:
- params (declared @parameters of the procedure header)
- select / insert / update / delete (with referenced tables)
- if / else / return

This is a heuristic, regex-driven scanner. It does not build an AST and
never raises on malformed input: the worst case is an empty step list.
"""

import re
from typing import Dict, List, Optional, Tuple


STATEMENT_KEYWORDS = ('SELECT', 'INSERT', 'UPDATE', 'DELETE', 'IF', 'ELSE', 'RETURN', 'BEGIN', 'END')

# BEGIN/END delimit blocks but never become steps
STRUCTURAL_KEYWORDS = {'BEGIN', 'END'}

# Step types that carry table references
DML_TYPES = {'select', 'insert', 'update', 'delete'}


class SQLFlowParser:
    """Parser for T-SQL stored procedure definitions"""

    def __init__(self):
        # /* ... */ (may span lines) and -- to end of line
        self.comment_pattern = re.compile(r'/\*.*?\*/|--[^\r\n]*', re.DOTALL)

        # Example: CREATE PROCEDURE [dbo].[WEB_Get_Cliente] @id INT, @name VARCHAR(50) AS
        self.header_pattern = re.compile(
            r'(?:CREATE(?:\s+OR\s+ALTER)?|ALTER)\s+PROC(?:EDURE)?\s+([\w.\[\]]+)(.*?)\bAS\b',
            re.IGNORECASE | re.DOTALL
        )

        # First AS separates the procedure header from its body
        self.body_start_pattern = re.compile(r'\bAS\b', re.IGNORECASE)

        self.keyword_pattern = re.compile(
            r'\b(' + '|'.join(STATEMENT_KEYWORDS) + r')\b',
            re.IGNORECASE
        )

        # Example: FROM [dbo].[Orders], JOIN Cliente, INSERT INTO dbo.Log
        self.table_pattern = re.compile(
            r'\b(?:FROM|JOIN|UPDATE|INSERT\s+INTO|DELETE\s+FROM)\s+([\w.\[\]]+)',
            re.IGNORECASE
        )

        self.whitespace_pattern = re.compile(r'\s+')

    def parse(self, sql: Optional[str]) -> List[Dict]:
        """
        Parse a stored procedure definition into flow steps.

        Args:
            sql: Full T-SQL text of the procedure (may be empty or None)

        Returns:
            List of step dicts with keys id, type, content, tables and,
            for every step but the last, next.
        """
        clean_sql = self.strip_comments(sql)
        segments = self.segment_statements(clean_sql)

        steps: List[Dict] = []
        step_counter = 0

        params = self.extract_parameters(clean_sql)
        if params:
            steps.append({
                'id': f'step_{step_counter}',
                'type': 'params',
                'content': ', '.join(params),
                'tables': [],
            })
            step_counter += 1

        for keyword, content in segments:
            step_type = keyword.lower()
            step = {
                'id': f'step_{step_counter}',
                'type': step_type,
                'content': content,
                'tables': self.extract_tables(content) if step_type in DML_TYPES else [],
            }
            step_counter += 1

            if steps:
                steps[-1]['next'] = [step['id']]
            steps.append(step)

        return steps

    def strip_comments(self, sql: Optional[str]) -> str:
        """Remove block and line comments, keeping the line structure intact"""
        if not sql:
            return ''
        return self.comment_pattern.sub(self._comment_replacement, sql)

    @staticmethod
    def _comment_replacement(match: re.Match) -> str:
        # Keep newlines of multi-line block comments so statements stay on their own lines
        newlines = match.group(0).count('\n')
        return '\n' * newlines if newlines else ' '

    def extract_procedure_name(self, sql: Optional[str]) -> str:
        """Return the (bracket-free) name declared in the CREATE/ALTER PROCEDURE header"""
        match = self.header_pattern.search(self.strip_comments(sql))
        if not match:
            return ''
        return match.group(1).replace('[', '').replace(']', '')

    def extract_parameters(self, sql: Optional[str]) -> List[str]:
        """
        Extract declared parameter names from the procedure header.

        Only the text between the procedure name and the first AS is
        considered. Each comma-separated fragment contributes its first
        token when that token starts with '@'.
        """
        match = self.header_pattern.search(self.strip_comments(sql))
        if not match:
            return []

        param_text = match.group(2).strip()
        if not param_text:
            return []

        params = []
        for fragment in param_text.split(','):
            tokens = fragment.strip().lstrip('(').split()
            if tokens and tokens[0].startswith('@'):
                params.append(tokens[0])
        return params

    def segment_statements(self, clean_sql: str) -> List[Tuple[str, str]]:
        """
        Split the procedure body into (KEYWORD, content) segments.

        The body starts after the first AS. Every hard keyword opens a new
        segment; text following BEGIN/END is appended to the segment that is
        still open. Segments without trailing text are dropped, except ELSE.
        """
        if not clean_sql:
            return []

        body_start = self.body_start_pattern.search(clean_sql)
        if not body_start:
            return []

        raw_segments: List[Tuple[str, List[str]]] = []
        cursor = body_start.end()

        for match in self.keyword_pattern.finditer(clean_sql, cursor):
            self._append_text(raw_segments, clean_sql[cursor:match.start()])

            keyword = match.group(1).upper()
            if keyword not in STRUCTURAL_KEYWORDS:
                raw_segments.append((keyword, []))
            cursor = match.end()

        self._append_text(raw_segments, clean_sql[cursor:])

        segments = []
        for keyword, parts in raw_segments:
            if not parts and keyword != 'ELSE':
                continue
            content = self.whitespace_pattern.sub(' ', ' '.join([keyword] + parts)).strip()
            segments.append((keyword, content))
        return segments

    @staticmethod
    def _append_text(raw_segments: List[Tuple[str, List[str]]], text: str):
        """Attach text to the open segment; text before the first keyword is dropped"""
        text = text.strip()
        if text and raw_segments:
            raw_segments[-1][1].append(text)

    def extract_tables(self, content: str) -> List[str]:
        """Collect referenced tables in first-seen order, brackets stripped, no duplicates"""
        tables: List[str] = []
        for table_name in self.table_pattern.findall(content or ''):
            table = table_name.replace('[', '').replace(']', '')
            if table and table not in tables:
                tables.append(table)
        return tables


def parse_sql_flow(sql: Optional[str]) -> List[Dict]:
    """Parse *sql* with a fresh SQLFlowParser"""
    return SQLFlowParser().parse(sql)
