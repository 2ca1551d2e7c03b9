"""
Business Labels - Turns raw SQL fragments into short, human-readable phrases
"""

import re
from typing import Dict, Optional


# Step type -> category shown as node title
STEP_CATEGORY_LABELS = {
    'params': 'Parámetros de Entrada',
    'select': 'Extracción de Datos',
    'insert': 'Proceso de Inserción',
    'update': 'Actualización de Registros',
    'delete': 'Eliminación de Datos',
    'if': 'Validación de Regla',
    'else': 'Ruta Alternativa',
    'return': 'Resultado Final',
}

GENERIC_QUERY_LABEL = 'Consulta de Información'
MAX_LABEL_LENGTH = 70

_FROM_PATTERN = re.compile(r'\bFROM\s+([\w.\[\]]+)', re.IGNORECASE)
_INSERT_PATTERN = re.compile(r'\bINSERT\s+INTO\s+([\w.\[\]]+)', re.IGNORECASE)
_UPDATE_PATTERN = re.compile(r'\bUPDATE\s+([\w.\[\]]+)', re.IGNORECASE)
_DELETE_PATTERN = re.compile(r'\bDELETE\s+(?:FROM\s+)?([\w.\[\]]+)', re.IGNORECASE)
_WHITESPACE = re.compile(r'\s+')

# Procedure name fragments that mark a lookup procedure
_LOOKUP_MARKERS = ('SEEK', 'GET')


def _strip_brackets(name: str) -> str:
    return name.replace('[', '').replace(']', '')


def get_category_label(step_type: str) -> str:
    """Category title for a step type; unknown types are shown uppercased"""
    return STEP_CATEGORY_LABELS.get(step_type, (step_type or '').upper())


def truncate_label(content: Optional[str], max_length: int = MAX_LABEL_LENGTH) -> str:
    text = _WHITESPACE.sub(' ', content or '').strip()
    if len(text) > max_length:
        return text[:max_length] + '...'
    return text


def get_business_label(step: Dict, sp_name: Optional[str]) -> str:
    """
    Build the business-friendly subtitle for a flow step.

    Args:
        step: Step dict (type, content)
        sp_name: Simple procedure name, used to tell lookup procedures apart

    Returns:
        e.g. 'Consultar datos de Cliente', 'Registrar en dbo.Orders' or the
        truncated statement text when no table can be identified.
    """
    step_type = step.get('type', '')
    content = _WHITESPACE.sub(' ', step.get('content') or '')

    if step_type == 'select':
        match = _FROM_PATTERN.search(content)
        if not match:
            return GENERIC_QUERY_LABEL
        table = _strip_brackets(match.group(1))
        upper_name = (sp_name or '').upper()
        if any(marker in upper_name for marker in _LOOKUP_MARKERS):
            return f'Consultar datos de {table}'
        return f'Obtener de {table}'

    if step_type == 'insert':
        match = _INSERT_PATTERN.search(content)
        if match:
            return f'Registrar en {_strip_brackets(match.group(1))}'
    elif step_type == 'update':
        match = _UPDATE_PATTERN.search(content)
        if match:
            return f'Actualizar {_strip_brackets(match.group(1))}'
    elif step_type == 'delete':
        match = _DELETE_PATTERN.search(content)
        if match:
            return f'Borrar de {_strip_brackets(match.group(1))}'

    return truncate_label(content)
