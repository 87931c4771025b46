"""Tests for the text-enhancement client

Run with pytest from project root:
    pytest tests/test_enhancement_client.py -v
"""

from unittest.mock import Mock, patch

import pytest
import requests

from enhancement_client import EnhancementClient
from exceptions import UpstreamError
from models.config import EnhancementConfig


def model_response(text, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return response


@pytest.fixture
def client():
    return EnhancementClient(EnhancementConfig(api_key="test-key", timeout_seconds=5))


class TestCallModel:
    """Tests for the raw generateContent call"""

    def test_request_shape(self, client):
        """Test endpoint, key header, timeout and prompt are sent"""
        with patch("enhancement_client.requests.post", return_value=model_response("Better")) as post:
            assert client.enhance("A site.") == "Better"

        args, kwargs = post.call_args
        assert args[0] == (
            "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
        )
        assert kwargs["headers"]["x-goog-api-key"] == "test-key"
        assert kwargs["timeout"] == 5
        prompt = kwargs["json"]["contents"][0]["parts"][0]["text"]
        assert "Description to enhance: A site." in prompt
        assert kwargs["json"]["generationConfig"]["thinkingConfig"]["thinkingBudget"] == 0

    def test_missing_api_key(self):
        """Test an unconfigured client fails without a network call"""
        client = EnhancementClient(EnhancementConfig(api_key=None))
        with patch("enhancement_client.requests.post") as post:
            with pytest.raises(UpstreamError):
                client.enhance("A site.")
        post.assert_not_called()

    def test_http_error(self, client):
        """Test a non-200 status becomes a retryable UpstreamError"""
        with patch("enhancement_client.requests.post", return_value=model_response("quota", status_code=429)):
            with pytest.raises(UpstreamError) as exc_info:
                client.enhance("A site.")
        assert exc_info.value.status_code == 429
        assert exc_info.value.retryable is True
        assert "quota" not in str(exc_info.value)

    def test_network_error(self, client):
        """Test connection failures become UpstreamError"""
        with patch("enhancement_client.requests.post", side_effect=requests.exceptions.ConnectionError("down")):
            with pytest.raises(UpstreamError):
                client.enhance("A site.")

    def test_empty_candidates(self, client):
        """Test a response without text is an UpstreamError"""
        response = model_response("")
        response.json.return_value = {"candidates": []}
        with patch("enhancement_client.requests.post", return_value=response):
            with pytest.raises(UpstreamError):
                client.enhance("A site.")


class TestExtraFields:
    """Tests for extra-field generation"""

    def test_parses_json(self, client):
        """Test the JSON object is parsed into the three fields"""
        payload = '{"siteSlang": "Ship it", "keywords": "seo, tags", "imageSubtitle": "Fast SEO"}'
        with patch("enhancement_client.requests.post", return_value=model_response(payload)):
            fields = client.generate_extra_fields("https://example.com", "Example", "Desc")
        assert fields == {"siteSlang": "Ship it", "keywords": "seo, tags", "imageSubtitle": "Fast SEO"}

    def test_strips_code_fences(self, client):
        """Test fenced JSON output is still accepted"""
        payload = '```json\n{"siteSlang": "a", "keywords": "b"}\n```'
        with patch("enhancement_client.requests.post", return_value=model_response(payload)):
            fields = client.generate_extra_fields("https://example.com", "Example", "Desc")
        assert fields == {"siteSlang": "a", "keywords": "b", "imageSubtitle": ""}

    def test_invalid_json(self, client):
        """Test non-JSON output raises UpstreamError"""
        with patch("enhancement_client.requests.post", return_value=model_response("Sure! Here you go")):
            with pytest.raises(UpstreamError):
                client.generate_extra_fields("https://example.com", "Example", "Desc")
