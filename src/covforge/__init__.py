from covforge.config import InstrumentConfig, canonical_path, load_config
from covforge.common_structures import Diagnostic, DiagnosticCode, NodeKind, TransformContext, \
    node_kind, isinstance_Block, isinstance_Functional, isinstance_Terminator, isinstance_TrackingCall
from covforge.lineno import LineMap, PositionUnavailable, SourceFile, resolve_original, \
    resolve_original_end, resolve_original_start, resolve_owning_file
from covforge.inject import instrument_block, make_tracking_call, visit_statement
from covforge.normalize import normalize_body
from covforge.walk import Instrumenter, prologue_length
from covforge.totals import compute_trackable_lines, count_blank_lines
from covforge.instrument import InstrumentResult, instrument_file, instrument_paths, \
    instrument_source, instrument_tree
from covforge.graph import DirectedGraph, tree_to_graph
