import libcst as cst
import pytest

import covforge.recorder as recorder
from covforge.config import InstrumentConfig
from covforge.instrument import instrument_file, instrument_paths, instrument_source

@pytest.fixture(autouse=True)
def clean_recorder():
    recorder.reset()
    yield
    recorder.reset()

def run(code, path):
    namespace = {}
    exec(compile(code, path, 'exec'), namespace)
    return namespace

def test_two_statements_end_to_end(monkeypatch):
    result = instrument_source("a()\nb()\n", "mod.py")

    assert result.code == (
        "import covforge.recorder as rcov\n"
        "a()\n"
        "rcov.track('mod.py', 1)\n"
        "b()\n"
        "rcov.track('mod.py', 2)\n"
        "rcov.totalLines('mod.py', 2)\n"
    )
    assert result.total_lines == 2
    assert not result.skipped

    events = []
    monkeypatch.setattr(recorder, 'track', lambda path, line: events.append(('track', path, line)))
    monkeypatch.setattr(recorder, 'totalLines', lambda path, count: events.append(('total', path, count)))

    import builtins
    monkeypatch.setattr(builtins, 'a', lambda: events.append('a()'), raising=False)
    monkeypatch.setattr(builtins, 'b', lambda: events.append('b()'), raising=False)
    run(result.code, 'mod.py')

    assert events == [
        'a()', ('track', 'mod.py', 1),
        'b()', ('track', 'mod.py', 2),
        ('total', 'mod.py', 2),
    ]

def test_recorder_counts_executions():
    result = instrument_source(
        "total = 0\n"
        "for i in range(3):\n"
        "    total += i\n",
        "pkg/loop.py")

    run(result.code, 'pkg/loop.py')

    assert recorder.hits('pkg/loop.py') == {1: 1, 2: 1, 3: 3}
    assert recorder.totals == {'pkg/loop.py': 3}

total_answers = [
    "a()\nb()\n", 2,
    # a blank line between statements moves the end line too, so the total stays put
    "a()\n\nb()\n", 2,
    "a()\nb()\n\n", 1,
    "# header\na()\n", 2,
    "def f():\n    a()\n\n    b()\n", 3,
    "", 0,
]

@pytest.mark.parametrize('code, expected', zip(total_answers[::2], total_answers[1::2]))
def test_total_lines(code, expected):
    result = instrument_source(code, "mod.py")

    assert result.total_lines == expected
    # An empty module has no trailing newline to keep
    assert result.code.rstrip('\n').endswith(f"rcov.totalLines('mod.py', {expected})")

def test_blank_line_lowers_total_by_one():
    # The blank line sits after the last statement, so the end line is unchanged
    without = instrument_source("a()\nb()\n", "mod.py").total_lines
    with_blank = instrument_source("a()\nb()\n\n", "mod.py").total_lines

    assert with_blank == without - 1

def test_ignored_file_is_untouched():
    code = "a()\n\n\nb()  # keep\n"
    config = InstrumentConfig(ignore_globs=['gen/*'])

    result = instrument_source(code, "gen/mod.py", config)

    assert result.code is code
    assert result.skipped
    assert result.total_lines is None
    assert 'rcov' not in result.code

def test_import_goes_after_prologue():
    result = instrument_source(
        '"""Module doc."""\n'
        'from __future__ import annotations\n'
        'x: int = 1\n',
        "mod.py")

    assert result.code == (
        '"""Module doc."""\n'
        'from __future__ import annotations\n'
        'import covforge.recorder as rcov\n'
        'x: int = 1\n'
        "rcov.track('mod.py', 3)\n"
        "rcov.totalLines('mod.py', 3)\n"
    )
    namespace = run(result.code, 'mod.py')
    assert namespace['__doc__'] == 'Module doc.'

def test_lone_docstring_gets_a_tracking_call():
    result = instrument_source('"""Module doc."""\nx = 1\n', "m.py")

    assert result.code == (
        '"""Module doc."""\n'
        'import covforge.recorder as rcov\n'
        "rcov.track('m.py', 1)\n"
        'x = 1\n'
        "rcov.track('m.py', 2)\n"
        "rcov.totalLines('m.py', 2)\n"
    )
    namespace = run(result.code, 'm.py')
    assert namespace['__doc__'] == 'Module doc.'
    assert recorder.hits('m.py') == {1: 1, 2: 1}

def test_recorder_import_without_alias():
    config = InstrumentConfig(recorder_module='rcov', recorder_name='rcov')
    result = instrument_source("a = 1\n", "m.py", config)

    assert result.code.startswith("import rcov\na = 1\nrcov.track('m.py', 1)\n")

def test_custom_recorder_name():
    config = InstrumentConfig(recorder_name='_cov')
    result = instrument_source("a = 1\n", "m.py", config)

    assert result.code == (
        "import covforge.recorder as _cov\n"
        "a = 1\n"
        "_cov.track('m.py', 1)\n"
        "_cov.totalLines('m.py', 1)\n"
    )

def test_output_parses_and_behaves_the_same():
    code = (
        "import math\n"
        "\n"
        "class Shape:\n"
        "    '''A shape.'''\n"
        "    sides = 0\n"
        "\n"
        "    def area(self): return 0\n"
        "\n"
        "def classify(n):\n"
        "    try:\n"
        "        if n < 0: raise ValueError(n)\n"
        "    except ValueError:\n"
        "        return 'negative'\n"
        "    else:\n"
        "        pass\n"
        "    finally:\n"
        "        done = True\n"
        "    while n > 10:\n"
        "        n //= 2\n"
        "    return 'small' if n < 5 else 'large'\n"
        "\n"
        "result = [classify(v) for v in (-1, 3, 100)]\n"
        "root = math.isqrt(16)\n"
    )

    result = instrument_source(code, "shapes.py")
    cst.parse_module(result.code)

    original = run(code, 'shapes.py')
    instrumented = run(result.code, 'shapes.py')

    assert instrumented['result'] == original['result'] == ['negative', 'small', 'large']
    assert instrumented['root'] == 4
    assert instrumented['Shape'].__doc__ == 'A shape.'
    assert instrumented['Shape']().area() == 0
    assert result.diagnostics == []

    hit_lines = set(recorder.hits('shapes.py'))
    assert {1, 3, 9, 22, 23} <= hit_lines
    assert 13 not in hit_lines

def test_instrument_file(tmp_path):
    path = tmp_path / "mod.py"
    path.write_text("x = 1\n", encoding='utf-8')

    result = instrument_file(path)

    assert result.total_lines == 1
    assert "rcov.track(" in result.code

def test_broken_file_does_not_stop_the_run(tmp_path):
    good = tmp_path / "good.py"
    bad = tmp_path / "bad.py"
    good.write_text("x = 1\n", encoding='utf-8')
    bad.write_text("def (:\n", encoding='utf-8')

    bad_result, good_result = instrument_paths([bad, good])

    assert bad_result.skipped
    assert bad_result.code == "def (:\n"
    assert not good_result.skipped
    assert good_result.total_lines == 1
