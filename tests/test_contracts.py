"""
Tests for per-tool argument contracts and clarification decisions.
"""
import pytest

from actionpipe.llm.schemas import ToolName
from actionpipe.tools.contracts import (
    CONTRACTS,
    CreateTaskArgs,
    RollingTasksArgs,
    clarification_for,
    needs_clarification,
    validate_tool_args,
)


class TestRegistry:
    def test_every_tool_has_a_contract(self):
        assert set(CONTRACTS) == set(ToolName)

    def test_unknown_tool_raises(self):
        with pytest.raises(KeyError):
            validate_tool_args("LAUNCH_ROCKET", {})


class TestCreateTask:
    def test_defaults_filled(self):
        res = validate_tool_args(ToolName.CREATE_TASK, {"title": "Buy milk", "category": "Shopping"})
        assert res.ok
        assert isinstance(res.args, CreateTaskArgs)
        assert res.args.priority == "Medium"
        assert res.args.category == "Shopping"
        assert not needs_clarification(res.errors)

    def test_camel_case_fields(self):
        res = validate_tool_args(
            "CREATE_TASK",
            {"title": "Dentist", "scheduledDate": "2026-03-02", "scheduledTime": "14:30", "youtubeUrl": "https://y.tube/x"},
        )
        assert res.ok
        assert res.args.scheduled_date == "2026-03-02"
        assert res.args.scheduled_time == "14:30"

    def test_missing_title_needs_clarification(self):
        res = validate_tool_args(ToolName.CREATE_TASK, {"category": "Work"})
        assert not res.ok
        assert [e.path for e in res.errors] == ["title"]
        assert needs_clarification(res.errors)

    def test_blank_title_rejected(self):
        res = validate_tool_args(ToolName.CREATE_TASK, {"title": "   "})
        assert not res.ok

    def test_bad_priority_is_not_a_clarification(self):
        res = validate_tool_args(ToolName.CREATE_TASK, {"title": "x", "priority": "Urgent"})
        assert not res.ok
        assert res.errors[0].path == "priority"
        assert not needs_clarification(res.errors)

    def test_non_object_payload(self):
        assert not validate_tool_args(ToolName.CREATE_TASK, None).ok


class TestChecklistAndRolling:
    def test_checklist_items_required(self):
        res = validate_tool_args(ToolName.CREATE_CHECKLIST, {"title": "Trip", "checklistItems": []})
        assert not res.ok
        assert needs_clarification(res.errors)

    def test_checklist_item_defaults(self):
        res = validate_tool_args(ToolName.CREATE_CHECKLIST, {"title": "Trip", "checklistItems": [{"text": "tent"}]})
        assert res.ok
        assert res.args.checklist_items[0].completed is False

    def test_rolling_bare_list_is_wrapped(self):
        res = validate_tool_args(ToolName.ROLLING_TASKS, [{"title": "a"}, {"title": "b"}])
        assert res.ok
        assert isinstance(res.args, RollingTasksArgs)
        assert [t.title for t in res.args.tasks] == ["a", "b"]

    def test_rolling_empty_list(self):
        assert not validate_tool_args(ToolName.ROLLING_TASKS, {"tasks": []}).ok

    def test_nested_missing_title_needs_clarification(self):
        res = validate_tool_args(ToolName.ROLLING_TASKS, {"tasks": [{"title": "ok"}, {"category": "Work"}]})
        assert [e.path for e in res.errors] == ["tasks.1.title"]
        assert needs_clarification(res.errors)

    def test_nested_minor_field_is_not_a_clarification(self):
        res = validate_tool_args(ToolName.ROLLING_TASKS, {"tasks": [{"title": "ok", "priority": "Urgent"}]})
        assert not res.ok
        assert not needs_clarification(res.errors)


class TestRequestTools:
    def test_print_targets(self):
        assert validate_tool_args(ToolName.PRINT_REQUEST, "todo_list").args == "todo_list"
        assert not validate_tool_args(ToolName.PRINT_REQUEST, "everything").ok

    def test_summarize_requires_valid_url(self):
        assert validate_tool_args(ToolName.SUMMARIZE_REQUEST, {"url": "https://example.com"}).args.mode == "summary"
        assert not validate_tool_args(ToolName.SUMMARIZE_REQUEST, {"url": "not a url"}).ok
        assert not validate_tool_args(ToolName.SUMMARIZE_REQUEST, {"mode": "poem", "url": "https://example.com"}).ok

    def test_template_name(self):
        assert validate_tool_args(ToolName.TEMPLATE_REQUEST, {"template_name": "ALL_ADHD"}).ok
        assert not validate_tool_args(ToolName.TEMPLATE_REQUEST, {"template_name": ""}).ok

    def test_weekly_report_defaults_and_bounds(self):
        res = validate_tool_args(ToolName.WEEKLY_REPORT_REQUEST, {})
        assert res.ok
        assert res.args.timeframe == "this_week"
        assert res.args.include_categories and res.args.include_appointments
        assert res.args.max_items_per_section == 10
        assert not validate_tool_args(ToolName.WEEKLY_REPORT_REQUEST, {"maxItemsPerSection": 51}).ok

    def test_share_schedule_permission(self):
        assert validate_tool_args(ToolName.SHARE_SCHEDULE, {"recipient": "sam", "permission": "view"}).ok
        assert not validate_tool_args(ToolName.SHARE_SCHEDULE, {"recipient": "sam", "permission": "own"}).ok


class TestContactsAndMessages:
    def test_add_contact_email(self):
        assert validate_tool_args(ToolName.ADD_CONTACT, {"displayName": "Sam", "email": "sam@example.com"}).ok
        res = validate_tool_args(ToolName.ADD_CONTACT, {"displayName": "Sam", "email": "sam-at-example"})
        assert not res.ok
        assert res.errors[0].path == "email"

    def test_find_contact_limit(self):
        assert not validate_tool_args(ToolName.FIND_CONTACT, {"query": "sam", "limit": 26}).ok
        assert not validate_tool_args(ToolName.FIND_CONTACT, {"query": ""}).ok

    def test_send_message_exactly_one_recipient(self):
        assert validate_tool_args(ToolName.SEND_MESSAGE, {"body": "hi", "toUserId": 2}).ok

        none = validate_tool_args(ToolName.SEND_MESSAGE, {"body": "hi"})
        assert not none.ok
        assert none.errors[0].path == "recipient"
        assert needs_clarification(none.errors)

        two = validate_tool_args(ToolName.SEND_MESSAGE, {"body": "hi", "toUserId": 2, "toContactId": 3})
        assert not two.ok
        assert two.errors[0].path == "recipient"

    def test_inbox_and_read(self):
        assert not validate_tool_args(ToolName.LIST_INBOX, {"limit": 0}).ok
        assert validate_tool_args(ToolName.LIST_INBOX, {}).ok
        assert not validate_tool_args(ToolName.READ_MESSAGE, {}).ok
        assert validate_tool_args(ToolName.READ_MESSAGE, {"messageId": 7, "markRead": True}).args.mark_read


class TestClarificationQuestions:
    def test_tool_specific(self):
        assert "URL" in clarification_for(ToolName.SUMMARIZE_REQUEST)
        assert "template" in clarification_for("TEMPLATE_REQUEST")

    def test_generic_fallback(self):
        assert clarification_for(ToolName.LIST_INBOX) == clarification_for("NOT_A_TOOL")
