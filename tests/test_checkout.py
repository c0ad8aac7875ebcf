import unittest
from unittest import mock

import requests

from jobboard.core.errors import (
    CheckoutMalformedResponse,
    CheckoutRejected,
    GENERIC_CHECKOUT_MESSAGE,
    MisconfiguredEndpoint,
)
from jobboard.core.metros import DEFAULT_METROS
from jobboard.core.validate import JobDraft, validate_draft
from jobboard.payments.checkout import checkout_payload, initiate_checkout, safe_base_url


def _draft(**overrides):
    fields = {"cafe_name": "Blue Door", "role": "Barista", "pay": "$18/hr", "apply_email": "hr@bluedoor.com"}
    fields.update(overrides)
    return validate_draft(JobDraft(**fields), DEFAULT_METROS["portland-or"])


def _response(status, body=None, text=None):
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if body is not None:
        resp.json.return_value = body
    else:
        resp.json.side_effect = ValueError(text or "no json")
    return resp


class SafeBaseUrlTests(unittest.TestCase):
    def test_accepts_absolute_http_urls(self):
        self.assertEqual(safe_base_url(" https://pay.example.com/// "), "https://pay.example.com")
        self.assertEqual(safe_base_url("http://localhost:8787"), "http://localhost:8787")

    def test_rejects_everything_else(self):
        for raw in (
            "not-a-url",
            "",
            None,
            "/create-checkout",
            "ftp://pay.example.com",
            "https://",
            "http://pay example.com",
            "https://pay.example.com:notaport",
            "https://pay.example.com:99999",
            "https://pay_$example!.com",
        ):
            with self.subTest(raw=raw):
                self.assertEqual(safe_base_url(raw), "")


class InitiateCheckoutTests(unittest.TestCase):
    def test_misconfigured_endpoint_makes_no_request(self):
        with mock.patch("jobboard.payments.checkout.requests.post") as post:
            with self.assertRaises(MisconfiguredEndpoint):
                initiate_checkout(_draft(), "not-a-url")
        post.assert_not_called()

    def test_malformed_host_or_port_makes_no_request(self):
        for endpoint in ("http://pay example.com", "https://pay.example.com:notaport"):
            session = mock.Mock()
            with self.subTest(endpoint=endpoint):
                with self.assertRaises(MisconfiguredEndpoint):
                    initiate_checkout(_draft(), endpoint, session=session)
                session.post.assert_not_called()

    def test_success_returns_redirect_url(self):
        session = mock.Mock()
        session.post.return_value = _response(200, {"url": "https://checkout.example.com/c/abc"})

        url = initiate_checkout(_draft(requested_pinned=True), "https://pay.example.com/", submission_id="s-1",
                                session=session)

        self.assertEqual(url, "https://checkout.example.com/c/abc")
        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "https://pay.example.com/create-checkout")
        self.assertIsNone(kwargs["timeout"])
        payload = kwargs["json"]
        self.assertEqual(payload["metro_slug"], "portland-or")
        self.assertEqual(payload["city"], "Portland")
        self.assertEqual(payload["state"], "OR")
        self.assertEqual(payload["cafe_name"], "Blue Door")
        self.assertIsNone(payload["apply_url"])
        self.assertTrue(payload["requested_pinned"])
        self.assertEqual(payload["submission_id"], "s-1")

    def test_rejection_uses_service_message(self):
        session = mock.Mock()
        session.post.return_value = _response(400, {"error": "Card declined"})
        with self.assertRaises(CheckoutRejected) as ctx:
            initiate_checkout(_draft(), "https://pay.example.com", session=session)
        self.assertEqual(ctx.exception.message, "Card declined")

    def test_rejection_without_body_uses_generic_message(self):
        session = mock.Mock()
        session.post.return_value = _response(502, text="<html>Bad gateway</html>")
        with self.assertRaises(CheckoutRejected) as ctx:
            initiate_checkout(_draft(), "https://pay.example.com", session=session)
        self.assertEqual(ctx.exception.message, GENERIC_CHECKOUT_MESSAGE)

    def test_network_failure_is_rejected(self):
        session = mock.Mock()
        session.post.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(CheckoutRejected) as ctx:
            initiate_checkout(_draft(), "https://pay.example.com", session=session)
        self.assertEqual(ctx.exception.message, GENERIC_CHECKOUT_MESSAGE)
        session.post.assert_called_once()

    def test_success_without_url_is_malformed(self):
        for body in ({}, {"url": ""}, {"url": None}, ["https://x"]):
            session = mock.Mock()
            session.post.return_value = _response(200, body)
            with self.subTest(body=body):
                with self.assertRaises(CheckoutMalformedResponse):
                    initiate_checkout(_draft(), "https://pay.example.com", session=session)

    def test_payload_omits_submission_id_when_absent(self):
        self.assertNotIn("submission_id", checkout_payload(_draft()))


if __name__ == "__main__":
    unittest.main()
