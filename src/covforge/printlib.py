import sys
from dataclasses import dataclass
import libcst as cst
from builtins import print as OGprint

'''
Console output for the instrumenter

Trace lines from the tree walk are indented with indent()/undent() and only shown
when verbose. Warnings always go to stderr
'''

__indents = 0
__verbose = False

def set_verbose(verbose: bool):
    global __verbose
    __verbose = verbose

def is_verbose():
    return __verbose

def indent():
    global __indents
    __indents += 1

def undent():
    global __indents
    __indents = max(__indents - 1, 0)

@dataclass
class BoldAnn:
    item: object

def bold(thing):
    return BoldAnn(thing)

def stringify(node):
    '''
    First line of code of the node
    Special case: strings are printed as-is, collections are printed item by item
    Error: if libCST cannot generate code for the node, prints the node type instead
    '''
    if isinstance(node, str):
        return node

    elif isinstance(node, (list, set, tuple)):
        return '(' + ', '.join([stringify(c) for c in node]) + ')'

    elif isinstance(node, cst.CSTNode):
        try:
            return cst.parse_module('').code_for_node(node).strip().split('\n')[0]
        except Exception as e:
            return 'No code for node ' + type(node).__name__ + ' (' + str(e) + ')'
    else:
        return str(node)

def _emit(items, file, color=None):
    indent_str = '\n' + '    ' * __indents

    OGprint('    ' * __indents, end='', file=file)
    if color is not None:
        OGprint(color, end='', file=file)

    for item in items:
        highlight = isinstance(item, BoldAnn)
        if highlight:
            OGprint("\033[0;32m", end='', file=file)
            item = item.item

        strform = stringify(item)
        strform = strform.replace('\n', indent_str)
        OGprint(strform, end=' ', file=file)

        if highlight:
            OGprint('\033[0m' if color is None else color, end='', file=file)

    if color is not None:
        OGprint('\033[0m', end='', file=file)
    OGprint(file=file)

def print(*args):
    '''
    Trace output, dropped unless verbose
    '''
    if __verbose:
        _emit(args, sys.stdout)

def warn(*args):
    _emit(('warning:',) + args, sys.stderr, color="\033[0;33m")
