from __future__ import annotations

import math
import unittest

import httplib2
from googleapiclient.errors import HttpError

from video_source.client import (
    SourceUnavailable,
    YouTubeSourceClient,
    chunked,
    execute_request,
    fetch_chunk_keeping_failures,
    parse_video_detail,
    redact_request_uri,
)

from tests.fakes import FakeRequest, FakeYouTubeService


def _http_error(status: int = 500) -> HttpError:
    return HttpError(httplib2.Response({"status": str(status), "reason": "Backend Error"}), b"{}")


def _search_item(video_id: str, kind: str = "youtube#video") -> dict:
    return {"id": {"kind": kind, "videoId": video_id}}


def _video_item(video_id: str, **extra) -> dict:
    item = {
        "id": video_id,
        "snippet": {
            "title": f"Title {video_id}",
            "channelId": "UC1",
            "channelTitle": "Snippet Channel",
            "publishedAt": "2024-03-01T10:00:00Z",
            "thumbnails": {"default": {"url": f"https://img/{video_id}.jpg"}},
            "tags": ["travel", "vlog"],
        },
    }
    item.update(extra)
    return item


class ChunkedTest(unittest.TestCase):
    def test_120_ids_make_three_chunks(self) -> None:
        ids = [f"v{i}" for i in range(120)]
        chunks = list(chunked(ids, 50))
        self.assertEqual([len(chunk) for chunk in chunks], [50, 50, 20])

    def test_chunks_recover_original_order(self) -> None:
        for total in (0, 1, 49, 50, 51, 137):
            ids = [f"v{i}" for i in range(total)]
            chunks = list(chunked(ids, 50))
            self.assertEqual(len(chunks), math.ceil(total / 50))
            self.assertTrue(all(len(chunk) <= 50 for chunk in chunks))
            self.assertEqual([video_id for chunk in chunks for video_id in chunk], ids)

    def test_rejects_non_positive_size(self) -> None:
        with self.assertRaises(ValueError):
            list(chunked(["a"], 0))


class ListVideoIdsTest(unittest.TestCase):
    def test_follows_cursor_until_exhausted(self) -> None:
        pages = {
            None: {"items": [_search_item("a1"), _search_item("a2")], "nextPageToken": "b"},
            "b": {"items": [_search_item("b1")], "nextPageToken": "c"},
            "c": {"items": [_search_item("c1"), _search_item("c2")]},
        }
        service = FakeYouTubeService(search=lambda params: FakeRequest(pages[params.get("pageToken")]))
        client = YouTubeSourceClient(service)

        ids = list(client.iter_channel_video_ids("UC1"))

        self.assertEqual(ids, ["a1", "a2", "b1", "c1", "c2"])
        calls = service.search_resource.calls
        self.assertEqual(len(calls), 3)
        self.assertEqual(calls[0]["channelId"], "UC1")
        self.assertEqual(calls[0]["order"], "date")
        self.assertEqual(calls[0]["maxResults"], 50)
        self.assertNotIn("pageToken", calls[0])
        self.assertEqual(calls[2]["pageToken"], "c")

    def test_skips_non_video_items(self) -> None:
        response = {
            "items": [
                _search_item("v1"),
                {"id": {"kind": "youtube#playlist", "playlistId": "PL1"}},
                _search_item("c1", kind="youtube#channel"),
            ]
        }
        client = YouTubeSourceClient(FakeYouTubeService(search=lambda params: FakeRequest(response)))
        self.assertEqual(list(client.iter_channel_video_ids("UC1")), ["v1"])

    def test_http_error_raises_source_unavailable(self) -> None:
        client = YouTubeSourceClient(
            FakeYouTubeService(search=lambda params: FakeRequest(error=_http_error(403)))
        )
        with self.assertRaises(SourceUnavailable):
            list(client.iter_channel_video_ids("UC1"))


class ChannelNamesTest(unittest.TestCase):
    def test_single_batched_call(self) -> None:
        response = {
            "items": [
                {"id": "UC1", "snippet": {"title": "First"}},
                {"id": "UC2", "snippet": {"title": "Second"}},
            ]
        }
        service = FakeYouTubeService(channels=lambda params: FakeRequest(response))
        directory = YouTubeSourceClient(service).list_channel_names(["UC1", "UC2"])

        self.assertEqual(directory, {"UC1": "First", "UC2": "Second"})
        self.assertEqual(len(service.channels_resource.calls), 1)
        self.assertEqual(service.channels_resource.calls[0]["id"], "UC1,UC2")
        self.assertEqual(service.channels_resource.calls[0]["part"], "snippet")

    def test_failure_is_not_retried_past_transport(self) -> None:
        request = FakeRequest(error=_http_error())
        client = YouTubeSourceClient(FakeYouTubeService(channels=lambda params: request))
        with self.assertRaises(SourceUnavailable):
            client.list_channel_names(["UC1"])
        self.assertEqual(request.executions, 1)


class VideoDetailsTest(unittest.TestCase):
    def test_parse_detail_with_location(self) -> None:
        item = _video_item(
            "v1",
            recordingDetails={
                "location": {"latitude": 48.85, "longitude": 2.35},
                "recordingDate": "2024-02-28T00:00:00Z",
            },
        )
        detail = parse_video_detail(item)
        assert detail is not None
        self.assertEqual(detail.title, "Title v1")
        self.assertEqual(detail.thumbnail, "https://img/v1.jpg")
        self.assertEqual(detail.tags, ("travel", "vlog"))
        self.assertTrue(detail.has_coordinates)
        self.assertEqual(detail.recording_date.isoformat(), "2024-02-28T00:00:00+00:00")

    def test_parse_detail_without_recording_details(self) -> None:
        detail = parse_video_detail(_video_item("v2"))
        assert detail is not None
        self.assertFalse(detail.has_coordinates)
        self.assertIsNone(detail.recording_date)

    def test_chunk_rejects_more_than_fifty_ids(self) -> None:
        client = YouTubeSourceClient(FakeYouTubeService())
        with self.assertRaises(ValueError):
            client.fetch_video_details_chunk([f"v{i}" for i in range(51)])

    def test_fetch_details_keeps_partial_results(self) -> None:
        def videos(params):
            ids = params["id"].split(",")
            if "v60" in ids:
                return FakeRequest(error=_http_error())
            # Deliberately reversed: callers must not rely on id order.
            return FakeRequest({"items": [_video_item(video_id) for video_id in reversed(ids)]})

        service = FakeYouTubeService(videos=videos)
        ids = [f"v{i}" for i in range(120)]
        result = YouTubeSourceClient(service).fetch_video_details(ids, batch_size=50)

        self.assertEqual([len(call["id"].split(",")) for call in service.videos_resource.calls], [50, 50, 20])
        self.assertEqual(len(result.details), 70)
        self.assertEqual(len(result.failures), 1)
        self.assertEqual(result.failures[0].index, 1)
        self.assertEqual(result.failures[0].video_ids, ids[50:100])
        self.assertEqual({detail.id for detail in result.details}, set(ids[:50] + ids[100:]))

    def test_fetch_chunk_keeping_failures_reports_failure(self) -> None:
        def failing(video_ids):
            raise SourceUnavailable("videos.list failed")

        details, failure = fetch_chunk_keeping_failures(failing, 3, ["a", "b"])

        self.assertEqual(details, [])
        self.assertEqual((failure.index, failure.video_ids), (3, ["a", "b"]))

    def test_fetch_chunk_keeping_failures_passes_details_through(self) -> None:
        details, failure = fetch_chunk_keeping_failures(lambda ids: ["detail"], 0, ["a"])
        self.assertEqual(details, ["detail"])
        self.assertIsNone(failure)


class RequestHelpersTest(unittest.TestCase):
    def test_redact_request_uri_drops_key(self) -> None:
        request = FakeRequest(uri="https://www.googleapis.com/youtube/v3/search?part=id&key=SECRET&channelId=UC1")
        sanitized = redact_request_uri(request)
        self.assertNotIn("SECRET", sanitized)
        self.assertIn("channelId=UC1", sanitized)

    def test_execute_request_wraps_os_error(self) -> None:
        with self.assertRaises(SourceUnavailable):
            execute_request(FakeRequest(error=ConnectionResetError("reset")), retries=0)


if __name__ == "__main__":
    unittest.main()
