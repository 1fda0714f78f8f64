import pytest

from plzdm.errors import MessageValidationError, ValidationError
from plzdm.schemas.messages import CallToAction, WelcomeMessageForm
from plzdm.services.message_assembler import assemble_message, validate_cta_url

BRANDED = CallToAction(label="Powered by PlzDM.me", url="https://plzdm.me?ref=powered-by")


def _assemble(form: dict, entitled: bool, **kwargs):
    kwargs.setdefault("branded_cta", BRANDED)
    return assemble_message(WelcomeMessageForm(**form), entitled, **kwargs)


def test_entitled_user_keeps_complete_ctas_and_branded_last():
    payload = _assemble(
        {"main_text": "Welcome!", "label_1": "Shop", "link_1": "https://example.com/shop", "label_2": "", "link_2": ""},
        True,
    )

    assert payload.to_message_data() == {
        "text": "Welcome!",
        "ctas": [
            {"type": "web_url", "label": "Shop", "url": "https://example.com/shop"},
            {"type": "web_url", "label": "Powered by PlzDM.me", "url": "https://plzdm.me?ref=powered-by"},
        ],
    }


def test_half_filled_cta_is_dropped():
    payload = _assemble({"main_text": "hi", "label_1": "Shop", "link_2": "https://example.com"}, True)

    assert [c.label for c in payload.ctas] == ["Powered by PlzDM.me"]


def test_unentitled_user_ctas_are_suppressed():
    payload = _assemble({"main_text": "hi", "label_1": "X", "link_1": "https://x.com"}, False)

    assert payload.to_message_data() == {
        "text": "hi",
        "ctas": [{"type": "web_url", "label": "Powered by PlzDM.me", "url": "https://plzdm.me?ref=powered-by"}],
    }


def test_unentitled_without_branding_omits_ctas_key():
    payload = _assemble({"main_text": "hi", "label_1": "X", "link_1": "https://x.com"}, False, unentitled_mode="none")

    assert payload.to_message_data() == {"text": "hi"}


def test_invalid_link_on_suppressed_cta_is_not_reported():
    payload = _assemble({"main_text": "hi", "label_1": "X", "link_1": "not a url"}, False)

    assert payload.ctas == [BRANDED]


def test_gate_off_keeps_user_ctas_for_everyone():
    payload = _assemble({"main_text": "hi", "label_1": "X", "link_1": "https://x.com"}, False, gate_ctas=False)

    assert [c.label for c in payload.ctas] == ["X", "Powered by PlzDM.me"]


def test_no_ctas_at_all_omits_key():
    payload = _assemble({"main_text": "hi"}, True, branded_cta=None)

    assert payload.ctas is None
    assert "ctas" not in payload.to_message_data()


def test_three_user_ctas_leave_no_room_for_branding():
    form = {"main_text": "hi"}
    for i in (1, 2, 3):
        form[f"label_{i}"] = f"L{i}"
        form[f"link_{i}"] = f"https://example.com/{i}"

    payload = _assemble(form, True)

    assert [c.label for c in payload.ctas] == ["L1", "L2", "L3"]


def test_form_values_are_stripped():
    payload = _assemble({"main_text": "  hi  ", "label_1": " Shop ", "link_1": " https://example.com "}, True)

    assert payload.text == "hi"
    assert payload.ctas[0].label == "Shop"
    assert payload.ctas[0].url == "https://example.com"


@pytest.mark.parametrize("main_text", ["", "   "])
def test_main_text_is_required(main_text):
    with pytest.raises(ValidationError) as exc_info:
        _assemble({"main_text": main_text}, True)

    assert exc_info.value.field == "main_text"


def test_main_text_too_long():
    with pytest.raises(ValidationError):
        _assemble({"main_text": "x" * 10001}, True)


def test_malformed_links_are_reported_per_field():
    with pytest.raises(MessageValidationError) as exc_info:
        _assemble(
            {
                "main_text": "hi",
                "label_1": "Local", "link_1": "http://127.0.0.1/x",
                "label_2": "Fine", "link_2": "https://example.com",
                "label_3": "Bad", "link_3": "javascript:alert(1)",
            },
            True,
        )

    assert exc_info.value.errors == {
        "link_1": "Please enter a valid URL.",
        "link_3": "Please enter a valid URL.",
    }
    assert isinstance(exc_info.value, ValidationError)


@pytest.mark.parametrize("url", [
    "https://example.com",
    "http://example.com/shop?item=1#top",
    "example.com/path",
    "//cdn.example.org/x",
    "https://sub.domain.example.co.uk:8443/a/b",
    "http://8.8.8.8/",
])
def test_public_urls_are_accepted(url):
    assert validate_cta_url(url)


@pytest.mark.parametrize("url", [
    "http://127.0.0.1/x",
    "http://10.0.0.1",
    "http://192.168.1.1/admin",
    "http://172.16.0.5",
    "http://169.254.169.254/latest/meta-data",
    "http://localhost:8000",
    "not a url",
    "https://exa mple.com",
    "https://example.com/" + "a" * 2048,
])
def test_private_or_malformed_urls_are_rejected(url):
    assert not validate_cta_url(url)
