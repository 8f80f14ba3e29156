import dataclasses

import pytest

from polyglot_rag.retrieval import ChunkingConfig, EmptyDocument, PageText, RetrievalConfig, index, query


def test_index_then_query_finds_the_matching_sentence():
    snapshot = index(
        [PageText(1, "The sky is blue. Water is wet.")],
        ChunkingConfig(target_size=20, overlap=5, min_size=5),
    )

    results = query("what color is the sky", snapshot, RetrievalConfig(top_k=1))

    assert len(results) == 1
    assert "The sky is blue" in results[0].text


def test_query_unspaced_script():
    text = "日本の首都は東京です。富士山は日本で一番高い山です。桜の季節はとても美しいです。京都には多くの寺があります。"
    snapshot = index([PageText(1, text)], ChunkingConfig(target_size=20, overlap=5, min_size=5))

    results = query("富士山の高さ", snapshot)

    assert results
    assert "富士山" in results[0].text


def test_query_reports_pages():
    snapshot = index(
        [
            PageText(1, "Chapter one introduces the parties to the agreement."),
            PageText(2, "Chapter two describes the monthly rent and the deposit."),
        ]
    )

    results = query("How much is the deposit?", snapshot)

    assert results[0].page == 2
    assert snapshot.page_count == 2
    assert snapshot.pages == [1, 2]


def test_unrelated_query_returns_nothing():
    snapshot = index([PageText(1, "The sky is blue. Water is wet.")])

    assert query("quarterly revenue forecast", snapshot) == []


def test_each_index_gets_a_newer_version():
    first = index([PageText(1, "first document")])
    second = index([PageText(1, "second document")])

    assert second.version > first.version
    assert len(first) == 1


def test_snapshot_is_immutable():
    snapshot = index([PageText(1, "some text")])

    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.version = 99
    assert isinstance(snapshot.chunks, tuple)


def test_index_rejects_empty_documents():
    with pytest.raises(EmptyDocument):
        index([PageText(1, "  "), PageText(2, "\n")])


def test_single_chunk_document_is_retrievable_with_default_settings():
    snapshot = index([PageText(1, "The sky is blue. Water is wet.")])

    results = query("what color is the sky", snapshot)

    assert len(snapshot) == 1
    assert [item.id for item in results] == [0]


def test_single_chunk_unspaced_document_is_retrievable():
    snapshot = index([PageText(1, "日本の首都は東京です。富士山は日本で一番高い山です。")])

    results = query("富士山の高さ", snapshot)

    assert len(snapshot) == 1
    assert "富士山" in results[0].text
