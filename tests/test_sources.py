"""
Tests for individual source modules.
"""

import unittest
from datetime import datetime, timezone
from unittest.mock import patch
from urllib.error import URLError

from fakes import (
    FakeUpstream,
    backlinks_payload,
    block_envelope,
    mini_doc,
    profile_envelope,
)

from blocklens.config import Settings
from blocklens.errors import BlockListError, ResolutionError
from blocklens.models import INVALID_HANDLE, ImageRef

SETTINGS = Settings(timeout=5)


class TestIdentity(unittest.TestCase):
    """Tests for Slingshot identity resolution."""

    def setUp(self):
        self.upstream = FakeUpstream()
        patcher = patch("blocklens.http.urlopen", self.upstream)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_resolves_handle(self):
        from blocklens.sources.identity import resolve_identity_result

        self.upstream.identities["alice.example"] = mini_doc("did:plc:alice", "alice.example")

        result = resolve_identity_result("alice.example", settings=SETTINGS)

        self.assertEqual(result.status, "ok")
        self.assertEqual(result.identity.did, "did:plc:alice")
        self.assertEqual(result.identity.handle, "alice.example")
        self.assertEqual(result.identity.pds, "https://pds.example")
        self.assertEqual(result.identity.signing_key, "zKey")
        self.assertIsNone(result.error)

    def test_unreachable_did_degrades(self):
        from blocklens.sources.identity import resolve_identity

        self.upstream.identities["did:plc:gone"] = URLError("connection refused")

        identity = resolve_identity("did:plc:gone", settings=SETTINGS)

        self.assertEqual(identity.did, "did:plc:gone")
        self.assertEqual(identity.handle, INVALID_HANDLE)
        self.assertEqual(identity.pds, "")
        self.assertEqual(identity.signing_key, "")

    def test_error_status_did_degrades_with_tag(self):
        from blocklens.sources.identity import resolve_identity_result

        self.upstream.identities["did:plc:gone"] = 500

        result = resolve_identity_result("did:plc:gone", settings=SETTINGS)

        self.assertEqual(result.status, "degraded")
        self.assertIn("500", result.error)
        self.assertEqual(result.identity.handle, INVALID_HANDLE)

    def test_unreachable_handle_is_fatal(self):
        from blocklens.sources.identity import resolve_identity, resolve_identity_result

        self.upstream.identities["nobody.example"] = URLError("connection refused")

        result = resolve_identity_result("nobody.example", settings=SETTINGS)
        self.assertEqual(result.status, "fatal")
        self.assertIsNone(result.identity)

        with self.assertRaises(ResolutionError) as ctx:
            resolve_identity("nobody.example", settings=SETTINGS)
        self.assertEqual(ctx.exception.identifier, "nobody.example")

    def test_not_found_handle_is_fatal(self):
        from blocklens.sources.identity import resolve_identity

        with self.assertRaises(ResolutionError):
            resolve_identity("missing.example", settings=SETTINGS)

    def test_payload_without_did_is_malformed(self):
        from blocklens.sources.identity import resolve_identity, resolve_identity_result

        self.upstream.identities["weird.example"] = {"error": "InvalidRequest"}
        self.upstream.identities["did:plc:weird"] = {"error": "InvalidRequest"}

        with self.assertRaises(ResolutionError):
            resolve_identity("weird.example", settings=SETTINGS)
        self.assertEqual(
            resolve_identity_result("did:plc:weird", settings=SETTINGS).status, "degraded"
        )

    def test_missing_handle_defaults_to_sentinel(self):
        from blocklens.sources.identity import parse_identity

        identity = parse_identity({"did": "did:plc:x"})
        self.assertEqual(identity.handle, INVALID_HANDLE)
        self.assertEqual(identity.pds, "")

    def test_single_attempt(self):
        from blocklens.sources.identity import RESOLVE_METHOD, resolve_identity_result

        self.upstream.identities["did:plc:gone"] = 503
        resolve_identity_result("did:plc:gone", settings=SETTINGS)
        self.assertEqual(len(self.upstream.calls_for(RESOLVE_METHOD)), 1)


class TestRecords(unittest.TestCase):
    """Tests for Slingshot record lookups (profile + block timestamp)."""

    def setUp(self):
        self.upstream = FakeUpstream()
        patcher = patch("blocklens.http.urlopen", self.upstream)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_fetch_profile(self):
        from blocklens.sources.records import fetch_profile

        self.upstream.records["at://did:plc:bob/app.bsky.actor.profile/self"] = profile_envelope(
            "did:plc:bob",
            display_name="Bob",
            avatar_cid="bafyavatar",
            banner_cid="bafybanner",
            description="hi",
        )

        profile = fetch_profile("did:plc:bob", settings=SETTINGS)

        self.assertEqual(profile.display_name, "Bob")
        self.assertEqual(profile.description, "hi")
        self.assertEqual(profile.avatar, ImageRef(cid="bafyavatar", mime_type="image/jpeg"))
        self.assertEqual(profile.banner, ImageRef(cid="bafybanner", mime_type="image/png"))
        self.assertEqual(profile.uri, "at://did:plc:bob/app.bsky.actor.profile/self")
        self.assertIsNone(profile.pronouns)

    def test_fetch_profile_keeps_missing_fields_absent(self):
        from blocklens.sources.records import fetch_profile

        self.upstream.records["at://did:plc:bob/app.bsky.actor.profile/self"] = profile_envelope(
            "did:plc:bob"
        )

        profile = fetch_profile("did:plc:bob", settings=SETTINGS)

        self.assertIsNotNone(profile)
        self.assertIsNone(profile.display_name)
        self.assertIsNone(profile.avatar)
        self.assertIsNone(profile.banner)

    def test_fetch_profile_absent_on_404(self):
        from blocklens.sources.records import fetch_profile

        self.assertIsNone(fetch_profile("did:plc:nobody", settings=SETTINGS))

    def test_fetch_profile_absent_on_transport_error(self):
        from blocklens.sources.records import fetch_profile

        self.upstream.records["at://did:plc:bob/app.bsky.actor.profile/self"] = URLError("down")
        self.assertIsNone(fetch_profile("did:plc:bob", settings=SETTINGS))

    def test_fetch_profile_absent_without_value(self):
        from blocklens.sources.records import fetch_profile

        self.upstream.records["at://did:plc:bob/app.bsky.actor.profile/self"] = {"uri": "x"}
        self.assertIsNone(fetch_profile("did:plc:bob", settings=SETTINGS))

    def test_image_ref_variants(self):
        from blocklens.sources.records import parse_image_ref

        self.assertEqual(
            parse_image_ref({"ref": {"$link": "bafy1"}, "mimeType": "image/webp"}),
            ImageRef(cid="bafy1", mime_type="image/webp"),
        )
        self.assertEqual(parse_image_ref({"cid": "bafy2"}), ImageRef(cid="bafy2", mime_type=""))
        self.assertIsNone(parse_image_ref({"ref": {}}))
        self.assertIsNone(parse_image_ref("bafy3"))
        self.assertIsNone(parse_image_ref(None))

    def test_fetch_record_timestamp(self):
        from blocklens.sources.records import fetch_record_timestamp

        self.upstream.records["at://did:plc:bob/app.bsky.graph.block/3kabc"] = block_envelope(
            "did:plc:bob", "3kabc", "2024-02-03T04:05:06.789Z"
        )

        created_at = fetch_record_timestamp(
            "did:plc:bob", "app.bsky.graph.block", "3kabc", settings=SETTINGS
        )

        self.assertEqual(created_at, datetime(2024, 2, 3, 4, 5, 6, 789000, tzinfo=timezone.utc))

    def test_fetch_record_timestamp_absent_on_error_status(self):
        from blocklens.sources.records import fetch_record_timestamp

        self.upstream.records["at://did:plc:bob/app.bsky.graph.block/3kabc"] = 502
        self.assertIsNone(
            fetch_record_timestamp("did:plc:bob", "app.bsky.graph.block", "3kabc", settings=SETTINGS)
        )

    def test_fetch_record_timestamp_absent_when_field_missing(self):
        from blocklens.sources.records import fetch_record_timestamp

        envelope = block_envelope("did:plc:bob", "3kabc", "x")
        del envelope["value"]["createdAt"]
        self.upstream.records["at://did:plc:bob/app.bsky.graph.block/3kabc"] = envelope

        self.assertIsNone(
            fetch_record_timestamp("did:plc:bob", "app.bsky.graph.block", "3kabc", settings=SETTINGS)
        )

    def test_parse_datetime(self):
        from blocklens.sources.records import parse_datetime

        utc = timezone.utc
        self.assertEqual(parse_datetime("2024-01-01T00:00:00Z"), datetime(2024, 1, 1, tzinfo=utc))
        self.assertEqual(
            parse_datetime("2024-01-01T00:00:00.123456789Z"),
            datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=utc),
        )
        self.assertEqual(parse_datetime("2024-01-01T00:00:00"), datetime(2024, 1, 1, tzinfo=utc))
        for raw, micro in (
            ("2024-05-01T12:00:00.1Z", 100000),
            ("2024-05-01T12:00:00.12Z", 120000),
            ("2024-05-01T12:00:00.1234Z", 123400),
            ("2024-05-01T12:00:00.12345+00:00", 123450),
        ):
            self.assertEqual(parse_datetime(raw), datetime(2024, 5, 1, 12, 0, 0, micro, tzinfo=utc), raw)
        self.assertEqual(
            parse_datetime("2024-01-01T02:00:00+02:00").astimezone(utc),
            datetime(2024, 1, 1, tzinfo=utc),
        )
        self.assertIsNone(parse_datetime("yesterday"))
        self.assertIsNone(parse_datetime(""))
        self.assertIsNone(parse_datetime(1704067200))


class TestBacklinks(unittest.TestCase):
    """Tests for Constellation block lists."""

    def setUp(self):
        self.upstream = FakeUpstream()
        patcher = patch("blocklens.http.urlopen", self.upstream)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_fetch_blocks_preserves_order(self):
        from blocklens.sources.backlinks import fetch_blocks

        records = [("did:plc:c", "1"), ("did:plc:a", "2"), ("did:plc:b", "3"), ("did:plc:a", "4")]
        self.upstream.backlinks["did:plc:target"] = backlinks_payload(records, cursor="next")

        result = fetch_blocks("did:plc:target", settings=SETTINGS)

        self.assertEqual([(r.did, r.rkey) for r in result.records], records)
        self.assertEqual(result.total, 4)
        self.assertFalse(result.truncated)
        self.assertEqual(result.cursor, "next")

    def test_fetch_blocks_request_shape(self):
        from blocklens.sources.backlinks import GET_BACKLINKS_METHOD, fetch_blocks

        self.upstream.backlinks["did:plc:target"] = backlinks_payload([])
        fetch_blocks("did:plc:target", settings=Settings(page_limit=25))

        (url,) = self.upstream.calls_for(GET_BACKLINKS_METHOD)
        self.assertTrue(url.startswith("https://constellation.microcosm.blue/xrpc/"))
        self.assertIn("subject=did%3Aplc%3Atarget", url)
        self.assertIn("source=app.bsky.graph.block%3Asubject", url)
        self.assertIn("limit=25", url)

    def test_truncated_when_total_exceeds_page(self):
        from blocklens.sources.backlinks import fetch_blocks

        records = [(f"did:plc:{i}", str(i)) for i in range(100)]
        self.upstream.backlinks["did:plc:target"] = backlinks_payload(records, total=150)

        result = fetch_blocks("did:plc:target", settings=SETTINGS)

        self.assertEqual(len(result.records), 100)
        self.assertTrue(result.truncated)

    def test_error_status_raises(self):
        from blocklens.sources.backlinks import fetch_blocks

        self.upstream.backlinks["did:plc:target"] = 500
        with self.assertRaises(BlockListError) as ctx:
            fetch_blocks("did:plc:target", settings=SETTINGS)
        self.assertEqual(ctx.exception.did, "did:plc:target")

    def test_transport_error_raises(self):
        from blocklens.sources.backlinks import fetch_blocks

        self.upstream.backlinks["did:plc:target"] = URLError("down")
        with self.assertRaises(BlockListError):
            fetch_blocks("did:plc:target", settings=SETTINGS)

    def test_malformed_payload_raises(self):
        from blocklens.sources.backlinks import fetch_blocks

        for payload in (
            {"total": 1},
            {"total": -1, "records": []},
            {"total": "3", "records": []},
            {"total": 1, "records": [{"did": "did:plc:a", "collection": "c"}]},
            {"total": 1, "records": ["did:plc:a"]},
        ):
            self.upstream.backlinks["did:plc:target"] = payload
            with self.assertRaises(BlockListError, msg=repr(payload)):
                fetch_blocks("did:plc:target", settings=SETTINGS)


if __name__ == "__main__":
    unittest.main()
