import random

import pytest

from polyglot_rag.retrieval import Chunk, ChunkingConfig, EmptyDocument, PageText, chunk

WORDS = [
    "contract",
    "payment",
    "tenant",
    "landlord",
    "deposit",
    "notice",
    "termination",
    "clause",
    "аренда",
    "договор",
    "срок",
    "оплата",
]


def generate_text(count: int, seed: int = 42) -> str:
    rng = random.Random(seed)
    sentences = []
    for _ in range(count):
        words = [rng.choice(WORDS) for _ in range(rng.randint(4, 12))]
        sentences.append(" ".join(words).capitalize() + ".")
    return " ".join(sentences)


def reconstruct(chunks: list[Chunk]) -> str:
    text = ""
    for item in chunks:
        assert item.start <= len(text)
        text += item.text[len(text) - item.start :]
    return text


@pytest.mark.parametrize(
    "config",
    [
        ChunkingConfig(target_size=80, overlap=15, min_size=10),
        ChunkingConfig(target_size=60, overlap=10, min_size=30),
        ChunkingConfig(target_size=50, overlap=0, min_size=0),
        ChunkingConfig(target_size=33, overlap=32, min_size=1),
        ChunkingConfig(target_size=120, overlap=40, min_size=100),
        ChunkingConfig(target_size=1000, overlap=200, min_size=100),
    ],
)
def test_chunks_cover_page_and_respect_bounds(config):
    text = generate_text(60)
    chunks = chunk([PageText(1, text)], config)

    assert reconstruct(chunks) == text
    for item in chunks:
        assert item.text == text[item.start : item.end]
        assert 0 < len(item.text) <= config.target_size
        if len(text) >= config.min_size:
            assert len(item.text) >= config.min_size


def test_chunk_is_deterministic():
    pages = [PageText(1, generate_text(20, seed=1)), PageText(2, generate_text(20, seed=2))]
    config = ChunkingConfig(target_size=90, overlap=20, min_size=10)

    assert chunk(pages, config) == chunk(pages, config)


def test_chunk_splits_at_sentence_boundary_with_overlap():
    chunks = chunk(
        [PageText(1, "The sky is blue. Water is wet.")],
        ChunkingConfig(target_size=20, overlap=5, min_size=5),
    )

    assert [item.text for item in chunks] == ["The sky is blue. ", "lue. Water is wet."]
    assert chunks[1].start < chunks[0].end


def test_short_page_is_a_single_chunk():
    chunks = chunk([PageText(3, "Hi")], ChunkingConfig(target_size=20, overlap=5, min_size=5))

    assert chunks == [Chunk(id=0, page=3, text="Hi", start=0, end=2)]


def test_unbroken_text_is_cut_at_target_size():
    text = "a" * 100
    chunks = chunk([PageText(1, text)], ChunkingConfig(target_size=30, overlap=10, min_size=5))

    assert [(item.start, item.end) for item in chunks] == [(0, 30), (20, 50), (40, 70), (60, 90), (80, 100)]


def test_trailing_fragment_is_not_emitted_below_min_size():
    text = "a" * 45
    chunks = chunk([PageText(1, text)], ChunkingConfig(target_size=20, overlap=0, min_size=10))

    assert [(item.start, item.end) for item in chunks] == [(0, 20), (20, 40), (25, 45)]
    assert reconstruct(chunks) == text


def test_chunks_are_page_tagged_with_ascending_ids():
    pages = [
        PageText(1, generate_text(10, seed=3)),
        PageText(2, "   \n  "),
        PageText(3, generate_text(10, seed=4)),
    ]
    chunks = chunk(pages, ChunkingConfig(target_size=100, overlap=20, min_size=10))

    assert [item.id for item in chunks] == list(range(len(chunks)))
    assert {item.page for item in chunks} == {1, 3}
    page_order = [item.page for item in chunks]
    assert page_order == sorted(page_order)


def test_chunk_never_spans_pages():
    pages = [PageText(1, "First page."), PageText(2, "Second page.")]
    chunks = chunk(pages, ChunkingConfig(target_size=100, overlap=10, min_size=1))

    assert [(item.page, item.text) for item in chunks] == [(1, "First page."), (2, "Second page.")]


def test_unspaced_script_is_chunked_within_bounds():
    text = "日本の首都は東京です。富士山は日本で一番高い山です。桜の季節はとても美しいです。京都には多くの寺があります。"
    config = ChunkingConfig(target_size=20, overlap=5, min_size=5)
    chunks = chunk([PageText(1, text)], config)

    assert len(chunks) > 1
    assert reconstruct(chunks) == text
    assert all(len(item.text) <= config.target_size for item in chunks)


def test_chunk_raises_for_documents_without_text():
    with pytest.raises(EmptyDocument):
        chunk([])
    with pytest.raises(EmptyDocument):
        chunk([PageText(1, "   \n"), PageText(2, "")])


@pytest.mark.parametrize(
    "kwargs",
    [
        {"target_size": 0},
        {"target_size": 10, "overlap": 10},
        {"target_size": 10, "overlap": -1},
        {"target_size": 10, "overlap": 2, "min_size": 11},
        {"target_size": 10, "overlap": 2, "boundary_window": -1},
    ],
)
def test_chunking_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ChunkingConfig(**kwargs)


def test_page_numbers_start_at_one():
    with pytest.raises(ValueError):
        PageText(0, "text")
