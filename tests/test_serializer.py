"""Unit tests for model and vocab file serialization."""

import pytest

import minbpe
from minbpe.errors import InvalidConfigurationError, InvalidFormatError, ModelLoadError
from minbpe.serializer import ModelState, read_model, write_model


@pytest.fixture
def wiki_tokenizer():
    tok = minbpe.get_tokenizer("basic")
    tok.train("aaabdaaabac", vocab_size=259)
    tok.register_special_tokens({"<|end of text|>": 300})
    return tok


def _write(tmp_path, content, name="broken.model"):
    path = tmp_path / name
    path.write_bytes(content.encode("utf-8"))
    return str(path)


# Save and load round-trip
# ---------------------------------------------------------------------------


def test_save_load_roundtrip(special_tokenizer, tmp_path):
    """Save and load preserves tokenizer state."""
    prefix = str(tmp_path / "tok")
    special_tokenizer.save(prefix)

    loaded = minbpe.from_pretrained(f"{prefix}.model")
    assert loaded.pattern == special_tokenizer.pattern
    assert loaded.merges == special_tokenizer.merges
    assert loaded.vocab == special_tokenizer.vocab
    assert loaded.special_tokens == special_tokenizer.special_tokens

    text = "test string<|endoftext|>"
    tokens = loaded.encode(text, allowed_special="all")
    assert tokens == special_tokenizer.encode(text, allowed_special="all")
    assert loaded.decode(tokens) == text


def test_basic_save_load_roundtrip(basic_tokenizer, tmp_path):
    prefix = str(tmp_path / "nested" / "basic_tok")
    basic_tokenizer.save(prefix)

    loaded = minbpe.from_pretrained(f"{prefix}.model")
    assert loaded.pattern is None
    text = "hello world"
    assert loaded.decode(loaded.encode(text)) == text


def test_model_file_layout(wiki_tokenizer, tmp_path):
    prefix = str(tmp_path / "wiki")
    wiki_tokenizer.save(prefix)

    content = (tmp_path / "wiki.model").read_text(encoding="utf-8")
    assert content == "minbpe v1\n\n1\n<|end of text|> 300\n97 97\n97 98\n256 257\n"


def test_vocab_file_layout(wiki_tokenizer, tmp_path):
    prefix = str(tmp_path / "wiki")
    wiki_tokenizer.save(prefix)

    lines = (tmp_path / "wiki.vocab").read_text(encoding="utf-8").splitlines()
    assert "[a] 97" in lines
    assert "[\\u000a] 10" in lines
    assert "[a][a] -> [aa] 256" in lines
    assert "[aa][ab] -> [aaab] 258" in lines
    assert lines[-1] == "[<|end of text|>] 300 (special)"


def test_load_replaces_pattern(regex_tokenizer, tmp_path):
    prefix = str(tmp_path / "tok")
    regex_tokenizer.save(prefix)

    tok = minbpe.get_tokenizer("basic")
    tok.load(f"{prefix}.model")
    assert tok.pattern == minbpe.get_pattern("gpt4")


def test_read_accepts_crlf(tmp_path):
    path = _write(tmp_path, "minbpe v1\r\n\r\n0\r\n97 97\r\n")
    state = read_model(tmp_path / "broken.model")
    assert state.pattern is None
    assert state.merges == {(97, 97): 256}
    assert minbpe.from_pretrained(path).encode("aa") == [256]


def test_write_read_model_state(tmp_path):
    state = ModelState(
        pattern=r"\w+|\s+",
        special_toks={"<|a b|>": 400},
        merges={(104, 105): 256, (256, 33): 257},
    )
    path = tmp_path / "state.model"
    write_model(path, state)
    assert read_model(path) == state


def test_pattern_with_line_break_cannot_be_saved(tmp_path):
    tok = minbpe.Tokenizer("a|\n")
    with pytest.raises(InvalidConfigurationError):
        tok.save(str(tmp_path / "tok"))


def test_merge_ids_not_starting_at_256_cannot_be_saved(tmp_path):
    tok = minbpe.Tokenizer(merges={(97, 97): 300})
    with pytest.raises(InvalidConfigurationError):
        tok.save(str(tmp_path / "tok"))
    assert not (tmp_path / "tok.model").exists()


def test_merge_ids_with_gap_cannot_be_saved(tmp_path):
    state = ModelState(merges={(97, 97): 256, (97, 98): 300, (300, 256): 301})
    path = tmp_path / "gap.model"
    with pytest.raises(InvalidConfigurationError):
        write_model(path, state)
    assert not path.exists()


# Load errors
# ---------------------------------------------------------------------------


def test_load_missing_file(tmp_path):
    with pytest.raises(ModelLoadError):
        minbpe.from_pretrained(str(tmp_path / "missing.model"))


def test_load_wrong_suffix(tmp_path):
    path = _write(tmp_path, "minbpe v1\n\n0\n", name="tok.txt")
    with pytest.raises(ModelLoadError):
        minbpe.from_pretrained(path)


def test_load_version_mismatch(tmp_path):
    path = _write(tmp_path, "minbpe v2\n\n0\n")
    with pytest.raises(InvalidFormatError) as exc_info:
        minbpe.from_pretrained(path)
    assert exc_info.value.version_mismatch == ("minbpe v2", "minbpe v1")


@pytest.mark.parametrize(
    "content",
    [
        "",
        "minbpe v1\n",
        "minbpe v1\n\nabc\n",
        "minbpe v1\n\n-1\n",
        "minbpe v1\n\n2\n<|a|> 300\n",
        "minbpe v1\n\n1\n<|a|>\n",
        "minbpe v1\n\n1\n<|a|> x\n",
        "minbpe v1\n\n0\n97\n",
        "minbpe v1\n\n0\n97 98 99\n",
        "minbpe v1\n\n0\n97 256\n",
        "minbpe v1\n\n0\n97 97\n97 97\n",
        "minbpe v1\n\n1\n<|a|> 256\n97 97\n",
        "minbpe v1\n\n2\n<|a|> 300\n<|b|> 300\n",
        "minbpe v1\n(unclosed\n0\n",
    ],
    ids=[
        "empty",
        "no-pattern-line",
        "bad-count",
        "negative-count",
        "truncated-specials",
        "special-without-id",
        "special-non-numeric-id",
        "merge-one-token",
        "merge-three-tokens",
        "forward-reference",
        "duplicate-merge",
        "special-collides-with-merge",
        "duplicate-special-id",
        "bad-pattern",
    ],
)
def test_load_malformed(tmp_path, content):
    path = _write(tmp_path, content)
    with pytest.raises(InvalidFormatError):
        minbpe.from_pretrained(path)


def test_failed_load_keeps_previous_state(regex_tokenizer, tmp_path):
    merges = dict(regex_tokenizer.merges)
    pattern = regex_tokenizer.pattern
    path = _write(tmp_path, "minbpe v1\n\n0\n97 97\n97 300\n")

    with pytest.raises(InvalidFormatError):
        regex_tokenizer.load(path)
    assert regex_tokenizer.merges == merges
    assert regex_tokenizer.pattern == pattern
