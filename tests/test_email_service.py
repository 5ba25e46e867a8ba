import requests

from config import TestingConfig
from utils.email_service import (
    DemoEmailProvider, ResendEmailProvider, get_email_provider, render_verification_link_email
)


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


def test_demo_provider_always_succeeds():
    ok, message = DemoEmailProvider('noreply@inst.edu').send('asha@inst.edu', 'Hi', '<p>hi</p>')
    assert ok is True
    assert 'demo' in message


def test_resend_success(monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({'url': url, 'headers': headers, 'json': json, 'timeout': timeout})
        return FakeResponse(200, {'id': 'email-1'})

    monkeypatch.setattr(requests, 'post', fake_post)
    provider = ResendEmailProvider('key-123', 'Club Events <noreply@inst.edu>', timeout=5)

    ok, _ = provider.send('asha@inst.edu', 'OTP', '<p>123456</p>')

    assert ok is True
    assert calls[0]['url'] == 'https://api.resend.com/emails'
    assert calls[0]['headers']['Authorization'] == 'Bearer key-123'
    assert calls[0]['json']['to'] == ['asha@inst.edu']
    assert calls[0]['timeout'] == 5


def test_resend_http_error(monkeypatch):
    monkeypatch.setattr(requests, 'post', lambda *a, **kw: FakeResponse(422, {'message': 'Invalid `to` field'}))
    ok, message = ResendEmailProvider('key', 'noreply@inst.edu').send('bad', 'OTP', '<p></p>')
    assert ok is False
    assert message == 'Invalid `to` field'


def test_resend_network_error(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError('dns failure')

    monkeypatch.setattr(requests, 'post', boom)
    ok, message = ResendEmailProvider('key', 'noreply@inst.edu').send('asha@inst.edu', 'OTP', '<p></p>')
    assert ok is False
    assert message == 'Email service unreachable'


def test_provider_selection_falls_back_to_demo():
    class ResendWithoutKey(TestingConfig):
        EMAIL_PROVIDER = 'resend'
        RESEND_API_KEY = None

    class ResendWithKey(TestingConfig):
        EMAIL_PROVIDER = 'resend'
        RESEND_API_KEY = 'key'

    assert isinstance(get_email_provider(TestingConfig), DemoEmailProvider)
    assert isinstance(get_email_provider(ResendWithoutKey), DemoEmailProvider)
    assert isinstance(get_email_provider(ResendWithKey), ResendEmailProvider)


def test_verification_link_email_contains_link():
    html = render_verification_link_email('Ravi', 'Robotics', 'http://x/verify?token=abc', 24, 'Portal')
    assert 'http://x/verify?token=abc' in html
    assert 'Robotics' in html
