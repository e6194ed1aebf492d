from app.services.intent_service import (
    contains_support_keyword,
    farewell_response,
    greeting_response,
    is_confirmation,
    is_greeting_message,
    is_menu_command,
    is_support_greeting,
    normalize_command,
    normalize_for_matching,
    starts_with_greeting,
)


class TestNormalization:
    def test_normalize_command_keeps_hash(self):
        assert normalize_command("  #Sprout   I3 ") == "#sprout i3"

    def test_normalize_command_empty(self):
        assert normalize_command("") == ""
        assert normalize_command(None) == ""

    def test_normalize_for_matching_trims_punctuation(self):
        assert normalize_for_matching("  Hi!! ") == "hi"
        assert normalize_for_matching("bye.") == "bye"


class TestGreetings:
    def test_exact_greetings(self):
        assert is_greeting_message("Good morning")
        assert greeting_response("hey!").startswith("Hey!")

    def test_starts_with_greeting_respects_word_boundary(self):
        assert starts_with_greeting("hello, anyone there?")
        assert not starts_with_greeting("history homework")
        assert not starts_with_greeting("hiking trip")

    def test_support_greeting(self):
        assert is_support_greeting("Hello, my email is not working")
        assert not is_support_greeting("my email is not working")
        assert not is_support_greeting("hello")


class TestSupportKeywords:
    def test_plural_keywords_match(self):
        assert contains_support_keyword("Having problems with the VPN")
        assert contains_support_keyword("errors everywhere")

    def test_no_keyword(self):
        assert not contains_support_keyword("good weather today")
        assert not contains_support_keyword("")


class TestCommands:
    def test_menu_command(self):
        assert is_menu_command("#sprout")
        assert is_menu_command(" #SPROUT 02")
        assert not is_menu_command("sprout 02")

    def test_confirmation_is_exact(self):
        assert is_confirmation("yes")
        assert is_confirmation("  Yes ")
        assert not is_confirmation("yes please")
        assert not is_confirmation("y")

    def test_farewell(self):
        assert farewell_response("Thank you!") is not None
        assert farewell_response("thank you for nothing") is None
