import pytest

from vadcondense.exceptions import CompileError
from vadcondense.filter_compiler import compile_filter
from vadcondense.models import SpeechSegment


def test_single_segment_expression():
    expression = compile_filter([SpeechSegment(0.5, 1.25)])
    assert str(expression) == "aselect='between(t,0.50,1.25)',asetpts=N/SR/TB"
    assert expression.segment_count == 1


def test_segments_are_joined_with_plus():
    expression = compile_filter([SpeechSegment(0.0, 1.0), SpeechSegment(2.0, 3.5)])
    assert expression.text == "aselect='between(t,0.00,1.00)+between(t,2.00,3.50)',asetpts=N/SR/TB"


def test_times_are_written_with_two_decimals():
    expression = compile_filter([SpeechSegment(1.23456, 2.98765)])
    assert "between(t,1.23,2.99)" in expression.text


def test_compilation_is_deterministic():
    segments = [SpeechSegment(0.1, 0.7), SpeechSegment(1.3, 2.9), SpeechSegment(4.0, 4.2)]
    first = compile_filter(segments)
    second = compile_filter(list(segments))
    assert first == second
    assert first.text.encode() == second.text.encode()


def test_empty_segment_list_fails():
    with pytest.raises(CompileError):
        compile_filter([])
