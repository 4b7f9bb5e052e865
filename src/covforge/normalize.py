import libcst as cst

from covforge.common_structures import Functional, TransformContext
from covforge.inject import instrument_block
from covforge.printlib import print

def suite_to_block(context: TransformContext, suite: cst.SimpleStatementSuite) -> cst.IndentedBlock:
    '''
    `def f(x): a(x); return x + 1` -> one SimpleStatementLine per small statement

    Statements keep their kind, so a return stays a return and the function's value
    is unchanged. Explicit semicolons are dropped since every statement ends its own
    line. Each synthesized node links back to what it replaces, the block to the
    suite and each line to its small statement
    '''
    lines = []
    for small in suite.body:
        stripped = small.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)
        context.link(stripped, small)

        line = cst.SimpleStatementLine(body=[stripped])
        context.link(line, stripped)
        lines.append(line)

    # The suite's trailing comment moves to the line holding the colon
    block = cst.IndentedBlock(body=lines, header=suite.trailing_whitespace)
    context.link(block, suite)
    return block

def normalize_body(context: TransformContext,
                   original_node: Functional,
                   updated_node: Functional) -> Functional:
    '''
    Make sure the function's body is an instrumented IndentedBlock

    An IndentedBlock body was already instrumented on the way up the walk and the
    node passes through. A one-line suite is rebuilt as a block, instrumented, and
    spliced back with with_changes so decorators, name, parameters, annotations and
    async are untouched
    '''
    body = updated_node.body

    if isinstance(body, cst.IndentedBlock):
        return updated_node

    if not isinstance(body, cst.SimpleStatementSuite):
        return updated_node

    print('normalize one-line body of', original_node.name.value)

    block = suite_to_block(context, body)
    instrumented = block.with_changes(body=instrument_block(context, block.body, block.body))
    context.link(instrumented, block)

    return updated_node.with_changes(body=instrumented)
