'''
Runtime side of the instrumentation. Instrumented modules import this module and call

    rcov.track("<path>", <line>)          after each statement that ran
    rcov.totalLines("<path>", <count>)    once, when the module finishes executing
'''
import collections
from typing import Dict

counters: collections.Counter = collections.Counter()
totals: Dict[str, int] = {}

def track(path: str, line: int):
    counters[(path, line)] += 1

def totalLines(path: str, count: int):
    totals[path] = count

def hits(path: str) -> Dict[int, int]:
    '''
    Line -> execution count for one file
    '''
    return {line: count for (p, line), count in counters.items() if p == path}

def reset():
    counters.clear()
    totals.clear()
