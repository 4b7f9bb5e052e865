import bisect
from typing import Iterable, Mapping, Optional, Tuple
import libcst as cst
from libcst.metadata import ByteSpanPositionProvider, CodeSpan, ParentNodeProvider

from covforge.config import canonical_path

'''
Position lookup for nodes that may have been rebuilt or synthesized

libCST keeps metadata outside the tree, keyed by node identity, and nodes are frozen
dataclasses so no .pos or .original attribute can be added to them. Every lookup
therefore goes through side tables: the spans and parents computed on the parsed
module, plus the origins table (node -> node it stands in for) kept by the walk
'''

class PositionUnavailable(Exception):
    '''
    The node, or the end of its original chain, has no recorded position. This is
    the expected failure for synthesized nodes and callers may skip over it
    '''
    def __init__(self, node: cst.CSTNode, detail: str = 'no recorded span'):
        super().__init__(f'{type(node).__name__}: {detail}')
        self.node = node

class LineMap:
    '''
    Byte offset -> 0-indexed (line, column). libCST spans count UTF-8 bytes, so the
    map is built on the encoded text
    '''
    def __init__(self, text: str):
        data = text.encode('utf-8')
        self.length = len(data)
        self.line_starts = [0]
        for index, byte in enumerate(data):
            if byte == 0x0A:
                self.line_starts.append(index + 1)

    def position(self, offset: int) -> Tuple[int, int]:
        if offset < 0 or offset > self.length:
            raise IndexError(f'offset {offset} outside of 0..{self.length}')

        line = bisect.bisect_right(self.line_starts, offset) - 1
        return line, offset - self.line_starts[line]

    def line(self, offset: int) -> int:
        return self.position(offset)[0]

    def __len__(self):
        return len(self.line_starts)

class SourceFile:
    '''
    One parsed file: canonical path, text, and the metadata-bearing module

    The module is the MetadataWrapper's copy, so its nodes are the keys of spans and
    parents. Always instrument source_file.module, never the module handed to parse
    '''
    def __init__(self,
                 path: str,
                 code: str,
                 module: cst.Module,
                 spans: Mapping[cst.CSTNode, CodeSpan],
                 parents: Mapping[cst.CSTNode, cst.CSTNode]):
        self.path = path
        self.code = code
        self.module = module
        self.spans = spans
        self.parents = parents
        self.line_map = LineMap(code)

    @classmethod
    def parse(cls, code: str, path) -> 'SourceFile':
        wrapper = cst.MetadataWrapper(cst.parse_module(code))
        return cls(canonical_path(path),
                   code,
                   wrapper.module,
                   wrapper.resolve(ByteSpanPositionProvider),
                   wrapper.resolve(ParentNodeProvider))

    def owns(self, node: cst.CSTNode) -> bool:
        return node is self.module or node in self.parents

    def parent_of(self, node: cst.CSTNode) -> Optional[cst.CSTNode]:
        return self.parents.get(node)

    def span_of(self, node: cst.CSTNode) -> CodeSpan:
        span = self.spans.get(node)
        if span is None:
            raise PositionUnavailable(node)
        return span

    def line_of(self, offset: int) -> int:
        try:
            return self.line_map.line(offset)
        except IndexError as e:
            raise PositionUnavailable(self.module, str(e)) from e

    def __repr__(self):
        return f'SourceFile({self.path!r})'

def resolve_owning_file(node: cst.CSTNode,
                        files: Iterable[SourceFile],
                        origins: Optional[Mapping[cst.CSTNode, cst.CSTNode]] = None) -> Optional[SourceFile]:
    '''
    The file a node belongs to, or None

    A module root is associated with its file directly. Any other parsed node climbs
    its parents to the root. A node with no parent was synthesized or rebuilt after
    parsing: its original reference is tried, then its own descendants are searched
    depth first and the first one that resolves wins
    '''
    files = list(files)

    for source_file in files:
        if node is source_file.module:
            return source_file

    for source_file in files:
        ancestor = source_file.parent_of(node)
        if ancestor is None:
            continue
        while ancestor is not source_file.module:
            parent = source_file.parent_of(ancestor)
            if parent is None:
                break
            ancestor = parent
        return source_file

    if origins and node in origins:
        found = resolve_owning_file(origins[node], files, origins)
        if found is not None:
            return found

    for child in node.children:
        found = resolve_owning_file(child, files, origins)
        if found is not None:
            return found

    return None

def resolve_original(node: cst.CSTNode, origins: Mapping[cst.CSTNode, cst.CSTNode]) -> cst.CSTNode:
    '''
    Follow the original-reference chain to its end
    '''
    seen = {id(node)}
    while node in origins:
        node = origins[node]
        if id(node) in seen:
            break
        seen.add(id(node))
    return node

def _original_span(source_file: SourceFile, node, origins) -> CodeSpan:
    return source_file.span_of(resolve_original(node, origins))

def resolve_original_start(source_file: SourceFile,
                           node: cst.CSTNode,
                           origins: Mapping[cst.CSTNode, cst.CSTNode]) -> int:
    return _original_span(source_file, node, origins).start

def resolve_original_end(source_file: SourceFile,
                         node: cst.CSTNode,
                         origins: Mapping[cst.CSTNode, cst.CSTNode]) -> int:
    span = _original_span(source_file, node, origins)
    return span.start + span.length

def original_start_line(source_file: SourceFile,
                        node: cst.CSTNode,
                        origins: Mapping[cst.CSTNode, cst.CSTNode]) -> int:
    '''
    0-indexed line where the original of node starts
    '''
    return source_file.line_of(resolve_original_start(source_file, node, origins))
