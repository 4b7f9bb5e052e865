from typing import Mapping, Optional, Sequence, Tuple
import libcst as cst

from covforge.lineno import PositionUnavailable, SourceFile, resolve_original_end
from covforge.printlib import print

def count_blank_lines(text: str) -> int:
    return sum(1 for line in text.splitlines() if line.strip() == '')

def find_reference_statement(source_file: SourceFile,
                             statements: Sequence[cst.CSTNode],
                             origins: Mapping[cst.CSTNode, cst.CSTNode]) \
        -> Tuple[Optional[cst.CSTNode], Optional[int]]:
    '''
    Last statement whose original end offset can be looked up, with that offset

    Trailing statements are usually synthesized (tracking calls) and have no position;
    those are skipped. Any other error is not expected here and is raised as-is
    rather than guessing past it
    '''
    for statement in reversed(statements):
        try:
            end = resolve_original_end(source_file, statement, origins)
        except PositionUnavailable:
            print('no position, skipping', statement)
            continue
        return statement, end

    return None, None

def compute_trackable_lines(source_file: SourceFile,
                            rewritten_statements: Sequence[cst.CSTNode],
                            origins: Mapping[cst.CSTNode, cst.CSTNode]) -> int:
    '''
    Lines up to the end of the last real top-level statement, minus blank lines

    The end line comes from the original file's line map, the blank lines are
    counted over the rewritten text. Tracking calls never add blank lines, so the
    two agree on everything but the inserted statements. A module without any
    positioned statement has no trackable lines
    '''
    reference, end = find_reference_statement(source_file, rewritten_statements, origins)
    if reference is None:
        return 0

    candidate = source_file.line_of(end) + 1

    rewritten_code = source_file.module.with_changes(body=rewritten_statements).code
    blank_lines = count_blank_lines(rewritten_code)

    print('total lines', candidate, '-', blank_lines, 'blank')
    return max(candidate - blank_lines, 0)
