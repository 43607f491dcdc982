"""
Tests for payload shaping and tolerant JSON parsing.
"""
from actionpipe.llm.extract import extract_first_command
from actionpipe.llm.json_parse import safe_json_parse
from actionpipe.llm.payload import shape_command, shape_payload
from actionpipe.llm.schemas import ToolName


class TestSafeJsonParse:
    def test_strict(self):
        assert safe_json_parse('{"a": 1}') == {"a": 1}

    def test_trailing_comma(self):
        assert safe_json_parse('{"a": 1, "b": [1, 2,],}') == {"a": 1, "b": [1, 2]}

    def test_single_quotes(self):
        assert safe_json_parse("{'title': 'Buy milk'}") == {"title": "Buy milk"}

    def test_garbage(self):
        assert safe_json_parse("{title: buy milk") is None
        assert safe_json_parse(None) is None
        assert safe_json_parse("") is None


class TestShapePayload:
    def test_print_request_first_token_lowercased(self):
        assert shape_payload(ToolName.PRINT_REQUEST, "  Todo_List please") == "todo_list"
        assert shape_payload(ToolName.PRINT_REQUEST, "   ") is None

    def test_summarize_mode_and_url(self):
        assert shape_payload(ToolName.SUMMARIZE_REQUEST, "highlights | https://example.com/a") == {
            "mode": "highlights",
            "url": "https://example.com/a",
        }

    def test_summarize_bare_url_gets_default_mode(self):
        assert shape_payload(ToolName.SUMMARIZE_REQUEST, "see https://example.com/page") == {
            "mode": "summary",
            "url": "https://example.com/page",
        }

    def test_summarize_without_url(self):
        assert shape_payload(ToolName.SUMMARIZE_REQUEST, "summarize this please") is None

    def test_template_brackets_stripped(self):
        assert shape_payload(ToolName.TEMPLATE_REQUEST, "[Morning Launch]") == {"template_name": "Morning Launch"}
        assert shape_payload(ToolName.TEMPLATE_REQUEST, "ALL_ADHD") == {"template_name": "ALL_ADHD"}

    def test_high_priority_flag(self):
        assert shape_payload(ToolName.HIGH_PRIORITY_REQUEST, "true") == {"value": True}
        assert shape_payload(ToolName.HIGH_PRIORITY_REQUEST, "no") == {"value": False}

    def test_rolling_tasks_list_is_wrapped(self):
        assert shape_payload(ToolName.ROLLING_TASKS, "", '[{"title": "a"}]') == {"tasks": [{"title": "a"}]}
        assert shape_payload(ToolName.ROLLING_TASKS, "", '{"tasks": [{"title": "a"}]}') == {"tasks": [{"title": "a"}]}

    def test_structured_tools_use_json(self):
        assert shape_payload("CREATE_TASK", "", '{"title": "x"}') == {"title": "x"}
        assert shape_payload(ToolName.CREATE_TASK, "", None) is None

    def test_shaping_is_idempotent(self):
        cmd = extract_first_command('CREATE_CHECKLIST: {"title": "Trip", "checklistItems": [{"text": "tent"}]}')
        first = shape_command(cmd)
        second = shape_command(cmd)
        assert first == second
        assert first is not second
