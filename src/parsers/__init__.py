"""
Parsers for stored procedure source text and .sql files.
"""

from .sql_flow_parser import SQLFlowParser, parse_sql_flow
from .sql_parser import SQLParser
from .business_labels import get_business_label, get_category_label

__all__ = ['SQLFlowParser', 'parse_sql_flow', 'SQLParser', 'get_business_label', 'get_category_label']
