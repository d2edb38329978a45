import io

from lexforge.dfa import CodegenResult, Dfa, build_equivalence_class
from lexforge.formatting import BYTE_MAX, format_table


def _set(dfa, state, ch, target):
    dfa.transition_table[state * BYTE_MAX + ord(ch)] = target


def make_ab_dfa():
    dfa = Dfa(3)
    _set(dfa, 0, "a", 1)
    _set(dfa, 1, "b", 2)
    dfa.end_bitmask[2] = True
    dfa.end_to_nfa_state[2] = 7
    dfa.handler_map = {7: "return 1;"}
    return dfa


def make_redundant_dfa():
    # Accepts "x" followed by any number of "a", with a duplicated accepting state.
    dfa = Dfa(3)
    _set(dfa, 0, "x", 1)
    _set(dfa, 1, "a", 2)
    _set(dfa, 2, "a", 1)
    for state in (1, 2):
        dfa.end_bitmask[state] = True
        dfa.end_to_nfa_state[state] = 5
    return dfa


def run(dfa, text):
    state = dfa.start_state
    for ch in text:
        state = dfa.transition_table[state * BYTE_MAX + ord(ch)]
        if state == -1:
            return None
    return dfa.end_to_nfa_state[state] if dfa.end_bitmask[state] else None


def test_new_dfa_has_no_transitions():
    dfa = Dfa(2)
    assert dfa.state_count() == 2
    assert dfa.transition_table == [-1] * (2 * BYTE_MAX)
    assert dfa.end_bitmask == [False, False]
    assert dfa.end_to_nfa_state == [-1, -1]
    assert dfa.start_state == 0


def test_equivalence_class_preserves_transitions():
    dfa = make_ab_dfa()
    result = build_equivalence_class(dfa.transition_table)
    assert len(result.classifier) == BYTE_MAX
    assert len(result.transition) == dfa.state_count() * result.class_count
    for state in range(dfa.state_count()):
        for ch in range(BYTE_MAX):
            expected = dfa.transition_table[state * BYTE_MAX + ch]
            got = result.transition[state * result.class_count + result.classifier[ch]]
            assert got == expected


def test_equivalence_class_groups_identical_columns():
    result = build_equivalence_class(make_ab_dfa().transition_table)
    assert result.classifier[0] == 0
    assert result.classifier[ord("c")] == result.classifier[0]
    assert result.classifier[ord("z")] == result.classifier[0]
    assert len({result.classifier[ord("a")], result.classifier[ord("b")], 0}) == 3
    assert result.class_count == len(set(result.classifier))


def test_optimize_merges_equivalent_states():
    dfa = make_redundant_dfa()
    dfa.optimize(False)
    assert dfa.state_count() == 2
    assert len(dfa.end_bitmask) == dfa.state_count()
    assert sum(dfa.end_bitmask) == 1


def test_optimize_preserves_language():
    samples = ["", "x", "xa", "xaa", "xaaa", "a", "xb", "xax"]
    dfa = make_redundant_dfa()
    before = [run(dfa, text) for text in samples]
    dfa.optimize(False)
    assert [run(dfa, text) for text in samples] == before


def test_optimize_keeps_rules_apart():
    dfa = Dfa(3)
    _set(dfa, 0, "a", 1)
    _set(dfa, 0, "b", 2)
    dfa.end_bitmask[1] = dfa.end_bitmask[2] = True
    dfa.end_to_nfa_state[1] = 3
    dfa.end_to_nfa_state[2] = 4
    dfa.optimize(False)
    assert dfa.state_count() == 3
    assert run(dfa, "a") == 3
    assert run(dfa, "b") == 4
    assert run(dfa, "") is None


def test_optimize_debug_reports_partitions(capsys):
    dfa = make_redundant_dfa()
    dfa.optimize(True)
    out = capsys.readouterr().out
    assert out.startswith("State equivalence classes:\n")
    assert "1,2" in out


def test_codegen_regular_tables():
    dfa = make_ab_dfa()
    out = io.StringIO()
    result = dfa.codegen(out, "// preamble", "ERR();", "INTERNAL();", False)
    text = out.getvalue()
    assert result == CodegenResult(classifier=[], transition=dfa.transition_table, class_count=0)
    assert "// preamble" in text
    assert "static constexpr int64_t START_STATE = 0;" in text
    assert f"END_BITMASK[] = {{ {format_table(dfa.end_bitmask)} }};" in text
    assert f"TRANSITION_TABLE[] = {{ {format_table(dfa.transition_table)} }};" in text
    assert "case 7: return 1;" in text
    assert "ERR();" in text and "INTERNAL();" in text
    assert "CLASSIFIER" not in text


def test_codegen_equivalence_class(capsys):
    dfa = make_ab_dfa()
    out = io.StringIO()
    result = dfa.codegen(out, "", "ERR();", "INTERNAL();", True)
    text = out.getvalue()
    assert result == build_equivalence_class(dfa.transition_table)
    assert f"CLASSIFIER[256] = {{ {format_table(result.classifier)} }};" in text
    assert f"CLASS_COUNT = {result.class_count};" in text
    assert f"TRANSITION_TABLE[] = {{ {format_table(result.transition)} }};" in text
    stdout = capsys.readouterr().out
    assert stdout.startswith(f"found {result.class_count} equivalence classes:\n")


def test_dump_lists_edges_and_end_states():
    dfa = make_ab_dfa()
    out = io.StringIO()
    dfa.dump(out)
    text = out.getvalue()
    assert text.startswith("digraph G{")
    assert text.endswith("}")
    assert '0 -> 1 [label="a"]\n' in text
    assert '1 -> 2 [label="b"]\n' in text
    assert "2 [shape=box]\n" in text
    assert "0 [shape=box]" not in text


def test_dump_merges_ranges():
    dfa = Dfa(2)
    for ch in "abc":
        _set(dfa, 0, ch, 1)
    out = io.StringIO()
    dfa.dump(out)
    assert '0 -> 1 [label="[a-c]"]\n' in out.getvalue()


def test_dump_escapes_for_dot():
    dfa = Dfa(3)
    _set(dfa, 0, "\n", 1)
    _set(dfa, 0, '"', 2)
    out = io.StringIO()
    dfa.dump(out)
    text = out.getvalue()
    assert '0 -> 1 [label="\\\\n"]\n' in text
    assert '0 -> 2 [label="\\""]\n' in text