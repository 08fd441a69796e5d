from legalai.services.laws import load_laws, search_laws


def test_catalog_is_complete_and_well_formed():
    laws = load_laws()
    assert len(laws) == 133
    for law in laws:
        assert law["title"]
        assert law["url"].startswith("http")


def test_empty_query_returns_everything():
    assert len(search_laws(None)) == 133
    assert len(search_laws("   ")) == 133


def test_search_is_case_insensitive_on_title_and_description():
    upper = search_laws("TRABAJO")
    lower = search_laws("trabajo")
    assert upper == lower
    assert upper
    assert all(
        "trabajo" in law["title"].lower() or "trabajo" in law["description"].lower()
        for law in upper
    )


def test_search_without_match():
    assert search_laws("zzz-no-existe-zzz") == []
