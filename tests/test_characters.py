import pytest

from charlm import Vocabulary
from charlm.errors import ArtifactError, CorpusError, VocabularyError


def test_from_text_is_sorted_and_distinct():
    vocab = Vocabulary.from_text("banana!")
    assert vocab.characters == "!abn"
    assert len(vocab) == 4
    assert "a" in vocab and "z" not in vocab


def test_encode_decode(text):
    vocab = Vocabulary.from_text(text)
    assert vocab.decode(vocab.encode("lazy dog")) == "lazy dog"


def test_unknown_character_is_named():
    vocab = Vocabulary.from_text("abc")
    with pytest.raises(VocabularyError, match="'z'"):
        vocab.encode("abz")


def test_empty_text_rejected():
    with pytest.raises(CorpusError):
        Vocabulary.from_text("")


def test_save_load(tmp_path):
    vocab = Vocabulary.from_text("héllo\nwörld")
    vocab.save(tmp_path / "vocab.json")
    assert Vocabulary.load(tmp_path / "vocab.json").characters == vocab.characters


def test_load_missing(tmp_path):
    with pytest.raises(ArtifactError):
        Vocabulary.load(tmp_path / "nope.json")


def test_load_malformed(tmp_path):
    path = tmp_path / "vocab.json"
    path.write_text("not json", encoding="utf-8")
    with pytest.raises(ArtifactError):
        Vocabulary.load(path)
    path.write_text('{"chars": "abc"}', encoding="utf-8")
    with pytest.raises(ArtifactError):
        Vocabulary.load(path)
