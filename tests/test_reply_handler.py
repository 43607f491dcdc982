"""
Tests for the single-command fast path over model replies, across flag combinations.
"""
import logging

from actionpipe.agent.executor import APOLOGY
from actionpipe.agent.reply_handler import handle_model_reply
from actionpipe.core.config import FeatureFlags
from actionpipe.db.repo import list_tasks
from actionpipe.llm.schemas import ToolName
from actionpipe.tools.contracts import clarification_for
from actionpipe.tools.registry import TOOLS

DEFAULT = FeatureFlags()
STRICT = FeatureFlags(strict=True)
DRY = FeatureFlags(dry_run=True)
DRY_STRICT = FeatureFlags(dry_run=True, strict=True)

TASK_REPLY = 'Got it! CREATE_TASK: {"title": "Buy milk", "category": "Shopping"}'


class TestPassThrough:
    async def test_no_marker(self, ctx):
        out = await handle_model_reply("Happy to help!", ctx, STRICT)
        assert out.response == "Happy to help!"
        assert out.actions == []

    async def test_default_flags_never_execute(self, ctx):
        out = await handle_model_reply(TASK_REPLY, ctx, DEFAULT)
        assert out.response == TASK_REPLY
        assert out.actions == []
        assert await list_tasks(ctx.db, ctx.user_id) == []

    async def test_dry_run_never_executes(self, ctx):
        for flags in (DRY, DRY_STRICT):
            out = await handle_model_reply(TASK_REPLY, ctx, flags)
            assert out.response == TASK_REPLY
            assert out.actions == []
        assert await list_tasks(ctx.db, ctx.user_id) == []

    async def test_dry_run_logs_validated_arguments(self, ctx, caplog):
        with caplog.at_level(logging.INFO, logger="actionpipe.agent.reply"):
            await handle_model_reply('CREATE_TASK: {"title": "Buy milk", "extra": 1}', ctx, DRY)
        line = next(m for m in caplog.messages if m.startswith("[DRY RUN]"))
        assert "'priority': 'Medium'" in line
        assert "extra" not in line

    async def test_invalid_payload_without_strict(self, ctx):
        reply = 'CREATE_TASK: {"category": "Work"}'
        assert (await handle_model_reply(reply, ctx, DEFAULT)).response == reply
        assert (await handle_model_reply(reply, ctx, DRY_STRICT)).response == reply

    async def test_unshapeable_payload_without_strict(self, ctx):
        reply = "SUMMARIZE_REQUEST: that article from earlier"
        assert (await handle_model_reply(reply, ctx, DEFAULT)).response == reply


class TestStrict:
    async def test_executes_and_confirms(self, ctx):
        out = await handle_model_reply(TASK_REPLY, ctx, STRICT)
        assert out.response == 'Task created: "Buy milk"'
        assert len(out.actions) == 1
        assert out.actions[0].type == ToolName.CREATE_TASK
        assert out.actions[0].data["title"] == "Buy milk"
        assert [t.title for t in await list_tasks(ctx.db, ctx.user_id)] == ["Buy milk"]

    async def test_invalid_payload_asks(self, ctx):
        out = await handle_model_reply('CREATE_TASK: {"category": "Work"}', ctx, STRICT)
        assert out.response == clarification_for(ToolName.CREATE_TASK)
        assert out.actions == []

    async def test_unshapeable_payload_asks(self, ctx):
        out = await handle_model_reply("SUMMARIZE_REQUEST: that article from earlier", ctx, STRICT)
        assert out.response == clarification_for(ToolName.SUMMARIZE_REQUEST)

    async def test_messageless_success_echoes_reply(self, ctx):
        reply = "Opening the print dialog.\nPRINT_REQUEST: conversation"
        out = await handle_model_reply(reply, ctx, STRICT)
        assert out.response == reply
        assert out.actions[0].type == ToolName.PRINT_REQUEST
        assert out.actions[0].data == {"printType": "conversation"}

    async def test_tool_clarification_is_returned(self, ctx):
        out = await handle_model_reply('SEND_MESSAGE: {"toUserId": 999, "body": "hi"}', ctx, STRICT)
        assert out.response.startswith("Who should I message?")
        assert out.actions == []

    async def test_executor_failure_apologises(self, ctx, monkeypatch):
        async def boom(args, ctx):
            raise ValueError("store offline")

        monkeypatch.setitem(TOOLS, ToolName.CREATE_TASK, boom)
        out = await handle_model_reply(TASK_REPLY, ctx, STRICT)
        assert out.response == APOLOGY
        assert "store offline" not in out.response
