"""
Flow Graph Builder - Turns parsed procedure steps into a node/edge graph

Graph shape (linear, no IF/ELSE branch reconstruction):
1. Start node → first step
2. Step → next step (sequential, animated)
3. Step → each of its tables (one table node per step/table pair)
4. Last step (or Start when there are no steps) → End node

Node positions are placeholders stacked by index; a layout pass is expected
to overwrite them before rendering.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from parsers.business_labels import get_business_label, get_category_label

STEP_SPACING_Y = 150
TABLE_OFFSET_X = 250
TABLE_SPACING_Y = 60


class FlowGraphBuilder:
    """Builds the visual flow graph of one stored procedure"""

    def build_graph(self, steps: List[Dict], sp_name: Optional[str]) -> Dict:
        """
        Build the flow graph.

        Args:
            steps: Steps produced by SQLFlowParser.parse
            sp_name: Procedure name shown on the Start node and used for labels

        Returns:
            {'nodes': [...], 'edges': [...]} ready to be serialized as JSON
        """
        sp_name = sp_name or ''
        nodes: List[Dict] = []
        edges: List[Dict] = []

        nodes.append({
            'id': 'start',
            'type': 'special',
            'data': {'label': 'Inicio', 'subLabel': sp_name, 'type': 'start'},
            'position': {'x': 0, 'y': 0},
        })

        if steps:
            edges.append({'id': 'e-start', 'source': 'start', 'target': steps[0]['id'], 'animated': True})

        for index, step in enumerate(steps):
            step_y = (index + 1) * STEP_SPACING_Y
            tables = step.get('tables') or []

            nodes.append({
                'id': step['id'],
                'type': 'custom',
                'data': {
                    'label': get_category_label(step['type']),
                    'subLabel': get_business_label(step, sp_name),
                    'type': step['type'],
                    'tables': list(tables),
                },
                'position': {'x': 0, 'y': step_y},
            })

            # One table node per step/table pair; not shared across steps
            for table_index, table in enumerate(tables):
                table_id = f"table-{step['id']}-{table_index}"
                nodes.append({
                    'id': table_id,
                    'type': 'table',
                    'data': {'label': table, 'type': 'table'},
                    'position': {'x': TABLE_OFFSET_X, 'y': step_y + table_index * TABLE_SPACING_Y},
                })
                edges.append({
                    'id': f"e-{step['id']}-{table_id}",
                    'source': step['id'],
                    'target': table_id,
                    'animated': False,
                })

            for next_id in step.get('next') or []:
                edges.append({
                    'id': f"e-{step['id']}-{next_id}",
                    'source': step['id'],
                    'target': next_id,
                    'animated': True,
                })

        nodes.append({
            'id': 'end',
            'type': 'special',
            'data': {'label': 'Fin', 'type': 'end'},
            'position': {'x': 0, 'y': (len(steps) + 1) * STEP_SPACING_Y},
        })
        last_id = steps[-1]['id'] if steps else 'start'
        edges.append({'id': f'e-{last_id}-end', 'source': last_id, 'target': 'end', 'animated': True})

        return {'nodes': nodes, 'edges': edges}


def summarize_graph(graph: Dict) -> Dict:
    """Node/edge totals, node counts per type and the tables shown in the graph"""
    node_types = defaultdict(int)
    tables = set()
    for node in graph.get('nodes', []):
        node_types[node['type']] += 1
        if node['type'] == 'table':
            tables.add(node['data']['label'])

    return {
        'total_nodes': len(graph.get('nodes', [])),
        'total_edges': len(graph.get('edges', [])),
        'node_types': dict(node_types),
        'tables': sorted(tables),
    }
