import json

import crawl


def write_site(tmp_path):
    a = tmp_path / "a.html"
    b = tmp_path / "b.html"
    a.write_text('<html><body><p>cat cat</p><a href="b.html">dog</a></body></html>', encoding="utf-8")
    b.write_text('<html><body><p>dog dog</p><a href="a.html">cat</a></body></html>', encoding="utf-8")
    return a


def test_cli_crawls_local_site(tmp_path):
    a = write_site(tmp_path)
    out = tmp_path / "result.json"
    config = tmp_path / "config.json"
    config.write_text(json.dumps({
        "startPages": [a.as_uri()],
        "maxDepth": 2,
        "timeoutSeconds": 30,
        "popularWordCount": 5,
        "parallelism": 2,
        "resultPath": str(out),
    }))

    assert crawl.main([str(config)]) == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["urlsVisited"] == 2
    assert list(data["wordCounts"].items()) == [("cat", 3), ("dog", 3)]


def test_cli_overrides_and_stdout(tmp_path, capsys):
    a = write_site(tmp_path)
    code = crawl.main([
        "--start", a.as_uri(),
        "--max-depth", "1",
        "--popular-words", "1",
        "--timeout", "30",
        "--ignore-word", "dog",
    ])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data == {"wordCounts": {"cat": 2}, "urlsVisited": 1}


def test_cli_rejects_bad_config(tmp_path):
    assert crawl.main(["--start", "https://example.com", "--max-depth", "-1"]) == 2
    assert crawl.main([]) == 2
    assert crawl.main([str(tmp_path / "missing.json")]) == 2
