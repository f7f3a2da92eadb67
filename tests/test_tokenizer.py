"""Unit tests for special-token wrapping, engine pairing and batch tokenization."""

import pytest

import piecetok as ptok
from piecetok.errors import ConfigError, VocabularyError


SPM_TOKENS = ["<s>", "</s>", "<unk>", "a", "b", "ab"]
SPM_SCORES = [0.0, 0.0, 0.0, -1.0, -1.0, -0.5]


# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def spm_vocab():
    """Return an SPM vocabulary with bos, eos and unk configured."""
    return ptok.Vocabulary(
        SPM_TOKENS,
        vocab_type=ptok.VocabType.SPM,
        scores=SPM_SCORES,
        bos_id=0,
        eos_id=1,
        unk_id=2,
    )


@pytest.fixture
def spm_tokenizer(spm_vocab):
    """Return an SPM tokenizer over ``spm_vocab``."""
    return ptok.SPMTokenizer(spm_vocab)


@pytest.fixture
def bpe_tokenizer():
    """Return a BPE tokenizer with bos/eos configured."""
    vocab = ptok.Vocabulary(
        ["<s>", "</s>", "h", "e", "l", "o", " ", "he", "hel", "hello"],
        vocab_type=ptok.VocabType.BPE,
        merges=["h e", "he l", "hel l", "hell o"],
        bos_id=0,
        eos_id=1,
    )
    return ptok.BPETokenizer(vocab)


# Special-token wrapping
# ---------------------------------------------------------------------------


def test_bos_eos_wrap(spm_tokenizer):
    """bos and eos are added around the engine output when requested."""
    assert spm_tokenizer.tokenize("ab") == [5]
    assert spm_tokenizer.tokenize("ab", add_bos=True) == [0, 5]
    assert spm_tokenizer.tokenize("ab", add_eos=True) == [5, 1]
    assert spm_tokenizer.tokenize("ab", add_bos=True, add_eos=True) == [0, 5, 1]


@pytest.mark.parametrize("text", ["", "a", "abba", "xyz", "ab ab"])
@pytest.mark.parametrize("name", ["spm_tokenizer", "bpe_tokenizer"])
def test_wrapping_adds_exactly_affixes(request, name, text):
    """Wrapping adds one id per configured marker and leaves the body unchanged."""
    tok = request.getfixturevalue(name)
    plain = tok.tokenize(text)
    wrapped = tok.tokenize(text, add_bos=True, add_eos=True)
    assert len(wrapped) == len(plain) + 2
    assert wrapped[0] == tok.vocab.bos_id
    assert wrapped[-1] == tok.vocab.eos_id
    assert wrapped[1:-1] == plain


def test_empty_text_keeps_markers(spm_tokenizer):
    """Empty text contributes nothing but still gets requested markers."""
    assert spm_tokenizer.tokenize("") == []
    assert spm_tokenizer.tokenize("", add_bos=True, add_eos=True) == [0, 1]


@pytest.mark.parametrize("bad_id", [-1, 6, 1000])
def test_invalid_markers_not_added(bad_id):
    """Markers that are unset or outside the vocabulary are skipped."""
    vocab = ptok.Vocabulary(
        SPM_TOKENS,
        scores=SPM_SCORES,
        bos_id=bad_id,
        eos_id=bad_id,
    )
    tok = ptok.SPMTokenizer(vocab)
    assert tok.tokenize("ab", add_bos=True, add_eos=True) == [5]


def test_bpe_engine_dispatch(bpe_tokenizer):
    """BPE vocabularies tokenize through rank merging."""
    assert bpe_tokenizer.tokenize("hello hel", add_bos=True) == [0, 9, 6, 8]


# Engine pairing
# ---------------------------------------------------------------------------


def test_spm_tokenizer_rejects_bpe_vocab(bpe_tokenizer):
    """An SPM tokenizer cannot be bound to a BPE vocabulary."""
    with pytest.raises(VocabularyError):
        ptok.SPMTokenizer(bpe_tokenizer.vocab)


def test_bpe_tokenizer_rejects_spm_vocab(spm_vocab):
    """A BPE tokenizer cannot be bound to an SPM vocabulary."""
    with pytest.raises(VocabularyError):
        ptok.BPETokenizer(spm_vocab)


def test_vocabularies_coexist(spm_tokenizer, bpe_tokenizer):
    """Tokenizers over different vocabularies do not affect each other."""
    assert spm_tokenizer.tokenize("ab") == [5]
    assert bpe_tokenizer.tokenize("hel") == [8]
    assert spm_tokenizer.vocab_size() == 6
    assert bpe_tokenizer.vocab_size() == 10


# Batch tokenization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("mode", ["off", "batch", "auto", "BATCH"])
def test_batch_matches_single(spm_tokenizer, mode):
    """Every parallel mode returns the single-text results in input order."""
    texts = ["ab", "", "ba", "abab", "xab", b"a\xffb"] * 5
    expected = [spm_tokenizer.tokenize(t, True, True) for t in texts]
    result = spm_tokenizer.tokenize_batch(
        texts, add_bos=True, add_eos=True, num_workers=4, parallel_mode=mode
    )
    assert result == expected


def test_batch_single_worker(bpe_tokenizer):
    """A worker count below one is treated as one worker."""
    texts = ["hello", "hel", "he"]
    assert bpe_tokenizer.tokenize_batch(texts, num_workers=0, parallel_mode="batch") == [
        [9],
        [8],
        [7],
    ]


def test_batch_empty(spm_tokenizer):
    """An empty batch gives an empty result."""
    assert spm_tokenizer.tokenize_batch([]) == []


def test_batch_unknown_mode_raises(spm_tokenizer):
    """Unknown parallel mode names raise ConfigError."""
    with pytest.raises(ConfigError):
        spm_tokenizer.tokenize_batch(["ab"], parallel_mode="chunk")


def test_list_parallel_modes():
    """All parallel mode names are listed."""
    assert ptok.list_parallel_modes() == ["auto", "batch", "off"]
