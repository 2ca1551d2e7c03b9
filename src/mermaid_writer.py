"""
Mermaid Writer - Renders procedure flow steps as a Mermaid `graph TD` diagram.
"""

import re
from typing import Dict, List, Optional

# Step type -> category shown in bold on the diagram node
MERMAID_CATEGORY_LABELS = {
    "params": "Parámetros de Entrada",
    "select": "Consulta de Datos",
    "insert": "Proceso de Inserción",
    "update": "Proceso de Actualización",
    "delete": "Proceso de Eliminación",
    "if": "Validación Condicional",
    "else": "Alternativa",
    "return": "Retorno de Valor",
}

# Step type -> class name from CLASS_DEFS
STEP_CLASSES = {
    "params": "params",
    "select": "select",
    "insert": "process",
    "update": "process",
    "delete": "process",
    "if": "logic",
    "else": "logic",
}

CLASS_DEFS = [
    "classDef start fill:#1e293b,stroke:#3b82f6,stroke-width:2px,color:#3b82f6,font-weight:bold;",
    "classDef params fill:#1e293b,stroke:#f59e0b,stroke-width:2px,color:#f59e0b;",
    "classDef process fill:#1e293b,stroke:#10b981,stroke-width:2px,color:#10b981;",
    "classDef select fill:#1e293b,stroke:#06b6d4,stroke-width:2px,color:#06b6d4;",
    "classDef logic fill:#1e293b,stroke:#a855f7,stroke-width:2px,color:#a855f7;",
    "classDef table fill:#1e293b,stroke:#84cc16,stroke-width:1px,color:#84cc16;",
]

MAX_DETAIL_LENGTH = 80

_DML_DETAIL = {
    "insert": (re.compile(r"\bINSERT\s+INTO\s+([\w.\[\]]+)", re.IGNORECASE), "Insertar en"),
    "update": (re.compile(r"\bUPDATE\s+([\w.\[\]]+)", re.IGNORECASE), "Actualizar"),
    "delete": (re.compile(r"\bDELETE\s+(?:FROM\s+)?([\w.\[\]]+)", re.IGNORECASE), "Eliminar de"),
}


class MermaidWriter:
    """Writes flow steps as Mermaid flowchart text"""

    def render(self, steps: List[Dict], sp_name: Optional[str] = None) -> str:
        lines = ["graph TD", "  Start([Inicio del Procedimiento]):::start"]
        # Newlines in the name would end the comment and start new statements
        comment = " ".join((sp_name or "").split())
        if comment:
            lines.append(f"  %% {comment}")

        if steps:
            lines.append(f"  Start --> {steps[0]['id']}")
        else:
            lines.append("  Start --> End")

        for step in steps:
            lines.append(f"  {step['id']}{self._shape(step)}{self._class_suffix(step)}")

            for index, table in enumerate(step.get("tables") or []):
                table_id = f"table_{step['id']}_{index}"
                lines.append(f'  {table_id}[("{table}")]:::table')
                lines.append(f"  {step['id']} -.-> {table_id}")

            if step.get("next"):
                for next_id in step["next"]:
                    lines.append(f"  {step['id']} --> {next_id}")
            else:
                lines.append(f"  {step['id']} --> End")

        lines.append("  End([Fin del Procedimiento]):::start")
        lines.extend(f"  {class_def}" for class_def in CLASS_DEFS)
        return "\n".join(lines) + "\n"

    def _shape(self, step: Dict) -> str:
        category = MERMAID_CATEGORY_LABELS.get(step["type"], step["type"].upper())
        detail = self._detail(step).replace('"', "'")
        if len(detail) > MAX_DETAIL_LENGTH:
            detail = detail[:MAX_DETAIL_LENGTH] + "..."
        label = f"<b>{category}</b><br/>{detail}"

        if step["type"] == "if":
            return f'{{"{label}"}}'
        if step["type"] == "return":
            return f'(["{label}"])'
        return f'["{label}"]'

    @staticmethod
    def _detail(step: Dict) -> str:
        content = step.get("content", "")
        if step["type"] in _DML_DETAIL:
            pattern, verb = _DML_DETAIL[step["type"]]
            match = pattern.search(content)
            if match:
                return f"{verb} {match.group(1).replace('[', '').replace(']', '')}"
        return content

    @staticmethod
    def _class_suffix(step: Dict) -> str:
        class_name = STEP_CLASSES.get(step["type"])
        return f":::{class_name}" if class_name else ""
