from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple
import libcst as cst

from covforge.common_structures import Diagnostic, TransformContext
from covforge.config import InstrumentConfig, canonical_path
from covforge.inject import recorder_call
from covforge.lineno import SourceFile
from covforge.printlib import bold, print, warn
from covforge.totals import compute_trackable_lines
from covforge.walk import Instrumenter, prologue_length

@dataclass
class InstrumentResult:
    path: str
    code: str
    total_lines: Optional[int] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    # True when the file was passed through untouched (ignored or failed)
    skipped: bool = False

def recorder_import(config: InstrumentConfig) -> cst.SimpleStatementLine:
    if config.recorder_name == config.recorder_module:
        return cst.parse_statement(f'import {config.recorder_module}\n')
    return cst.parse_statement(f'import {config.recorder_module} as {config.recorder_name}\n')

def instrument_tree(source_file: SourceFile, config: InstrumentConfig) \
        -> Tuple[cst.Module, TransformContext, int]:
    '''
    Walk one file, count its trackable lines, then add the recorder import after the
    prologue and the totalLines report after the last statement
    '''
    context = TransformContext(config=config, files=[source_file])

    rewritten = source_file.module.visit(Instrumenter(context))
    total_lines = compute_trackable_lines(source_file, rewritten.body, context.origins)

    skip = prologue_length(rewritten.body)
    body = list(rewritten.body[:skip])
    body.append(recorder_import(config))
    body += rewritten.body[skip:]
    body.append(cst.SimpleStatementLine(
        body=[recorder_call(config, 'totalLines', source_file.path, total_lines)]))

    return rewritten.with_changes(body=body), context, total_lines

def instrument_source(code: str, path, config: Optional[InstrumentConfig] = None) -> InstrumentResult:
    '''
    Instrument the source text of one file. Files matching an ignore glob come back
    byte-identical
    '''
    if config is None:
        config = InstrumentConfig()

    if config.is_ignored(path):
        print('ignored', path)
        return InstrumentResult(canonical_path(path), code, skipped=True)

    source_file = SourceFile.parse(code, path)
    module, context, total_lines = instrument_tree(source_file, config)

    print('instrumented', bold(source_file.path), total_lines, 'trackable lines,',
          len(context.diagnostics), 'diagnostics')
    return InstrumentResult(source_file.path, module.code, total_lines, context.diagnostics)

def instrument_file(path, config: Optional[InstrumentConfig] = None) -> InstrumentResult:
    with open(path, 'r', encoding='utf-8') as file:
        code = file.read()

    return instrument_source(code, path, config)

def instrument_paths(paths: Iterable, config: Optional[InstrumentConfig] = None) -> List[InstrumentResult]:
    '''
    Instrument several files. A file that fails is reported and passed through as-is
    so the rest of the run goes on
    '''
    results = []
    for path in paths:
        with open(path, 'r', encoding='utf-8') as file:
            code = file.read()

        try:
            results.append(instrument_source(code, path, config))
        except Exception as e:
            warn('failed to instrument', path, ':', type(e).__name__, str(e))
            results.append(InstrumentResult(canonical_path(path), code, skipped=True))

    return results
