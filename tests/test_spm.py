"""Unit tests for the score-driven SPM tokenizer."""

import pytest

from piecetok import SPMTokenizer, Vocabulary, VocabType


def make_spm(tokens, scores=None, unk_id=-1):
    """Build an SPM tokenizer over ``tokens``; every token scores 0.0 unless given."""
    if scores is None:
        scores = [0.0] * len(tokens)
    vocab = Vocabulary(tokens, vocab_type=VocabType.SPM, scores=scores, unk_id=unk_id)
    return SPMTokenizer(vocab)


# Merge ordering
# ---------------------------------------------------------------------------


def test_equal_scores_merge_leftmost_first():
    """At equal score the leftmost pair merges, so "aba" is "ab" + "a"."""
    tok = make_spm(["a", "b", "ab", "ba"], [0.0, 0.0, 1.0, 1.0])
    assert tok.tokenize("aba") == [2, 0]


def test_higher_score_merges_first():
    """A better-scoring pair to the right beats a worse one to the left."""
    tok = make_spm(["a", "b", "ab", "ba"], [0.0, 0.0, 1.0, 2.0])
    assert tok.tokenize("aba") == [0, 3]


def test_merges_chain_into_longer_tokens():
    """A merged symbol can merge again with its neighbour."""
    tok = make_spm(["a", "b", "c", "ab", "abc"], [0.0, 0.0, 0.0, 1.0, 2.0])
    assert tok.tokenize("abc") == [4]


def test_stale_bigram_is_discarded():
    """A queued pair whose right symbol was merged away is not applied."""
    # "bc" wins, which leaves the queued "ab" pointing at a grown symbol
    tok = make_spm(["a", "b", "c", "ab", "bc"], [0.0, 0.0, 0.0, 1.0, 5.0])
    assert tok.tokenize("abc") == [0, 4]


def test_repeated_substring():
    """Repeated pairs are each merged left to right."""
    tok = make_spm(["a", "b", "ab", "ba"], [0.0, 0.0, 1.0, 1.0])
    assert tok.tokenize("ababa") == [2, 2, 0]


def test_multibyte_codepoints():
    """Symbols are whole codepoints, not bytes."""
    tok = make_spm(["é", "t", "ét"], [0.0, 0.0, 1.0])
    assert tok.tokenize("été") == [2, 0]


def test_pair_outside_vocabulary_does_not_merge():
    """A pair whose concatenation is not a token is never queued."""
    vocab = Vocabulary(["a", "b"], vocab_type=VocabType.SPM, scores=[0.0, 0.0])
    tok = SPMTokenizer(vocab)
    assert tok.tokenize("ab") == [0, 1]


# Unknown handling
# ---------------------------------------------------------------------------


def test_unknown_codepoint_substituted():
    """A codepoint outside the vocabulary becomes the unknown id."""
    tok = make_spm(["a", "b"], unk_id=2)
    assert tok.tokenize("ac") == [0, 2]


def test_unknown_codepoint_dropped_without_unk():
    """Without an unknown id, unmappable codepoints are dropped."""
    tok = make_spm(["a", "b"])
    assert tok.tokenize("acb") == [0, 1]


def test_no_scores_yields_single_unknown():
    """Without scores any non-empty text is a single unknown token."""
    vocab = Vocabulary(["<unk>", "a"], vocab_type=VocabType.SPM, unk_id=0)
    assert SPMTokenizer(vocab).tokenize("aaa") == [0]


def test_no_scores_without_unknown_is_empty():
    """Without scores or an unknown id the output is empty."""
    vocab = Vocabulary(["a"], vocab_type=VocabType.SPM)
    assert SPMTokenizer(vocab).tokenize("aaa") == []


# Byte input
# ---------------------------------------------------------------------------


def test_invalid_leading_byte_skipped():
    """Invalid UTF-8 leading bytes produce no symbol and no unknown."""
    tok = make_spm(["a", "b"], unk_id=2)
    assert tok.tokenize(b"a\xffb") == [0, 1]


def test_truncated_sequence_skipped():
    """A multi-byte sequence cut off at the end is treated as invalid."""
    tok = make_spm(["a"], unk_id=1)
    assert tok.tokenize(b"a\xe6\x97") == [0]


def test_invalid_byte_between_symbols_blocks_merge():
    """A merge candidate spans the skipped byte, so "a\\xffb" never becomes "ab"."""
    tok = make_spm(["a", "b", "ab"], [0.0, 0.0, 1.0], unk_id=3)
    assert tok.tokenize(b"a\xffb") == [0, 1]
    assert tok.tokenize(b"ab") == [2]


def test_only_invalid_bytes():
    """Input made only of invalid bytes tokenizes to nothing."""
    tok = make_spm(["a"], unk_id=1)
    assert tok.tokenize(b"\x80\xbf") == []


# Properties
# ---------------------------------------------------------------------------


def test_empty_text():
    """Empty input gives an empty sequence."""
    tok = make_spm(["a"], unk_id=0)
    assert tok.tokenize("") == []


@pytest.mark.parametrize("text", ["aba", "abcabc", "hello", "ß∂ƒ"])
def test_deterministic(text):
    """Identical input always yields identical ids."""
    tok = make_spm(["a", "b", "c", "ab", "bc", "abc"], [0, 0, 0, 1, 1, 3], unk_id=0)
    assert tok.tokenize(text) == tok.tokenize(text)
