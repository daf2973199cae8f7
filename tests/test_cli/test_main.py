"""
Smoke tests for the ReplyDesk CLI.
"""

import pytest
import json

import main
from src.utils.storage import ReviewStore


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    # Log file lands in the working directory
    monkeypatch.chdir(tmp_path)
    export = {
        "restaurants": [{"id": "rest-1", "name": "Luigi's"}],
        "reviews": [{
            "id": "rev-1",
            "restaurantId": "rest-1",
            "rating": 2,
            "authorName": "Priya",
            "publishedAt": "2024-06-02T10:00:00Z",
            "content": "Cold food",
        }],
    }
    export_path = tmp_path / "export.json"
    export_path.write_text(json.dumps(export))
    return tmp_path, str(tmp_path / "store.json"), str(export_path)


def run(*argv):
    with pytest.raises(SystemExit) as exc_info:
        main.main(list(argv))
    return exc_info.value.code


def test_import_respond_and_post(workspace, capsys):
    """Test import, respond and post commands end to end."""
    _, store_path, export_path = workspace

    assert run("--store", store_path, "import", export_path) == 0
    assert run("--store", store_path, "--user", "u-7", "respond", "rev-1",
               "--content", "Sorry, Priya", "--tone", "apologetic") == 0

    response = ReviewStore(store_path).list_responses("rev-1")[0]
    assert response.user_id == "u-7"

    assert run("--store", store_path, "post", response.response_id) == 0
    # Posting twice is reported, not an error
    assert run("--store", store_path, "post", response.response_id) == 0

    assert ReviewStore(store_path).get_review("rev-1").status.value == "RESPONDED"
    assert "already posted" in capsys.readouterr().out


def test_unknown_review_exits_nonzero(workspace):
    """Test unknown review id exits with an error code."""
    _, store_path, _ = workspace
    assert run("--store", store_path, "status", "missing", "ignored") == 1


def test_generate_requires_api_key(workspace, monkeypatch):
    """Test generate command without an API key."""
    _, store_path, export_path = workspace
    monkeypatch.setattr(main.settings, "GOOGLE_API_KEY", "")

    run("--store", store_path, "import", export_path)
    assert run("--store", store_path, "generate", "rev-1") == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
