from typing import Dict, List
import libcst as cst

from covforge.common_structures import isinstance_TrackingCall, isinstance_Whitespace

class DirectedGraph:
    '''
    Directed graph over CST nodes, for looking at a (rewritten) tree

    Insert nodes with add_node(), link inserted ones with add_edge(parent, child).
    Edges keep insertion order. to_image() builds a graphviz Digraph
    '''
    def __init__(self):
        self.objects: Dict[str, cst.CSTNode] = {}
        self.child_ids: Dict[str, List[str]] = {}

    def add_node(self, obj):
        if str(id(obj)) in self.objects:
            raise RuntimeError('Cannot add the same object twice')

        self.objects[str(id(obj))] = obj
        self.child_ids[str(id(obj))] = list()
        return obj

    def add_edge(self, parent: cst.CSTNode, child: cst.CSTNode):
        assert str(id(parent)) in self.objects and str(id(child)) in self.objects, \
            'Cannot link objects that don\'t exist'

        self.child_ids[str(id(parent))].append(str(id(child)))

    def children(self, obj):
        return list(map(self.objects.get, self.child_ids[str(id(obj))]))

    def __iter__(self):
        return self.objects.values().__iter__()

    def __len__(self):
        return len(self.objects)

    def to_image(self, root: cst.Module, recorder_name='rcov', dot=None):
        '''
        Graphviz representation, skipping whitespace nodes for brevity. Tracking
        calls are filled so they stand out from the original statements
        '''
        from graphviz import Digraph

        if dot is None:
            dot = Digraph()

        # Only nodes that were drawn get edges
        included_id = set()

        for id, node in self.objects.items():
            if isinstance_Whitespace(node):
                continue

            node_name = type(node).__name__
            try:
                node_name += '\n' + root.code_for_node(node).strip().split('\n')[0]
            except Exception:
                node_name += '\n(no code)'

            if isinstance(node, cst.Expr) and isinstance_TrackingCall(node, recorder_name):
                dot.node(name=id, label=node_name, style='filled', fillcolor='palegreen')
            else:
                dot.node(name=id, label=node_name)

            included_id.add(id)

        for parent_id, children in self.child_ids.items():
            for child_id in children:
                if parent_id in included_id and child_id in included_id:
                    dot.edge(parent_id, child_id)

        return dot

def tree_to_graph(tree: cst.CSTNode, statements_only=False) -> DirectedGraph:
    '''
    One graph node per CST node. With statements_only the walk stops at small
    statements, which keeps module-sized graphs readable
    '''
    graph = DirectedGraph()

    def tree_walk(node):
        if str(id(node)) in graph.objects:
            return
        graph.add_node(node)
        if statements_only and isinstance(node, (cst.BaseSmallStatement, cst.BaseExpression)):
            return
        for child in node.children:
            tree_walk(child)
            graph.add_edge(node, child)

    tree_walk(tree)

    return graph

def render(tree: cst.Module, output_path: str, recorder_name='rcov', format='png'):
    dot = tree_to_graph(tree, statements_only=True).to_image(tree, recorder_name)
    dot.format = format
    return dot.render(output_path)
