import os
import argparse

import libcst as cst

import covforge
from covforge import graph
from covforge.printlib import bold, print, set_verbose, warn

def output_paths(inputs, output):
    '''
    One input writes to the output path itself, several inputs write into the
    output directory under their own base names
    '''
    if len(inputs) == 1 and not os.path.isdir(output):
        return [output]

    os.makedirs(output, exist_ok=True)
    return [os.path.join(output, os.path.basename(path)) for path in inputs]

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Instrument Python files with statement coverage tracking calls")
    parser.add_argument("-i", "--input", help="Input file(s)", nargs='+', required=True)
    parser.add_argument("-o", "--output", help="Output file, or directory for several inputs", required=True)
    parser.add_argument("--ignore", help="Glob of files to pass through untouched", action='append', default=None)
    parser.add_argument("--config", help="pyproject.toml holding a [tool.covforge] table", default='pyproject.toml')
    parser.add_argument("--recorder-module", help="Module imported as the recorder", default=None)
    parser.add_argument("--recorder-name", help="Name the recorder is imported as", default=None)
    parser.add_argument("--graph", help="Render the instrumented tree of each file to this path", default=None)
    parser.add_argument("-v", "--verbose", help="Trace the tree walk", action='store_true')
    args = parser.parse_args()

    set_verbose(args.verbose)

    config = covforge.load_config(args.config,
                                  ignore_globs=args.ignore,
                                  recorder_module=args.recorder_module,
                                  recorder_name=args.recorder_name)

    print('Reading', args.input)

    results = covforge.instrument_paths(args.input, config)

    for result, path in zip(results, output_paths(args.input, args.output)):
        with open(path, "w", encoding='utf-8') as file:
            file.write(result.code)

        if result.skipped:
            warn('passed through', result.path)
            continue

        if args.graph:
            target = args.graph if len(results) == 1 else args.graph + '_' + os.path.basename(path)
            graph.render(cst.parse_module(result.code), target, config.recorder_name)

        print('Generated', bold(path), result.total_lines, 'trackable lines')
