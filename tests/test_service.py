"""Tests for the agent context service façade and the operator CLI."""

import pytest
from click.testing import CliRunner
from conftest import FakeCacheProvider, KeywordEmbeddings

from contextcache.cli import cli
from contextcache.core.config import Config
from contextcache.modules.models import Embedder
from contextcache.modules.rules import InMemoryRuleStore, RelevantRule, StaticEmbeddingKeyResolver
from contextcache.modules.tools import ToolDescriptor
from contextcache.service import RULES_HEADER, AgentContextService, TurnContext

TOOLS = {"lookup": ToolDescriptor.json("lookup", {"type": "object", "properties": {}})}


@pytest.fixture
def service(config, embedding_key, clock):
    fake = KeywordEmbeddings(embedding_key)
    return AgentContextService(
        config,
        rule_store=InMemoryRuleStore(),
        cache_provider=FakeCacheProvider(),
        key_resolver=StaticEmbeddingKeyResolver(default=embedding_key),
        embedder=Embedder(config, factory=lambda key: fake),
        clock=clock,
    )


class TestTurnContext:
    def test_empty_rules_block(self):
        assert TurnContext().rules_block() == ""

    def test_rules_block(self):
        ctx = TurnContext(
            rules=[RelevantRule(id="1", content="Be brief."), RelevantRule(id="2", content="No emoji.")]
        )
        assert ctx.rules_block() == f"{RULES_HEADER}\nBe brief.\n\nNo emoji."


class TestAgentContextService:
    @pytest.mark.asyncio
    async def test_prepare_turn(self, service):
        await service.writer.upsert("agent-1", "Mention the shipping price", ["shipping"])

        turn = await service.prepare_turn(
            "agent-1", "You sell shoes.", TOOLS, ["lookup"], "how much is shipping?"
        )

        assert turn.cache_handle == "h1"
        assert turn.rules[0].content == "Mention the shipping price"
        assert turn.rules_block().startswith(RULES_HEADER)

    @pytest.mark.asyncio
    async def test_prepare_turn_degrades_independently(self, service):
        turn = await service.prepare_turn("agent-1", "You sell shoes.", TOOLS, [], "hello")

        assert turn.cache_handle is None
        assert turn.rules == []

    def test_search_must_be_available(self, config):
        class NoSearchStore:
            pass

        with pytest.raises(TypeError):
            AgentContextService(config, rule_store=NoSearchStore())

    def test_from_config_without_dsn_uses_memory(self, config):
        svc = AgentContextService.from_config(config)
        assert isinstance(svc.writer._store, InMemoryRuleStore)


class TestCli:
    def test_add_list_search(self, service):
        runner = CliRunner()
        obj = {"service": service}

        added = runner.invoke(cli, ["rules", "add", "agent-1", "Offer a refund", "--tag", "Refunds"], obj=obj)
        assert added.exit_code == 0, added.output
        rule_id = added.output.strip().splitlines()[-1]

        listed = runner.invoke(cli, ["rules", "list", "agent-1"], obj=obj)
        assert rule_id in listed.output
        assert "{refunds}" in listed.output

        found = runner.invoke(cli, ["rules", "search", "agent-1", "refund please"], obj=obj)
        assert rule_id in found.output

        disabled = runner.invoke(cli, ["rules", "disable", "agent-1", rule_id], obj=obj)
        assert disabled.exit_code == 0
        found = runner.invoke(cli, ["rules", "search", "agent-1", "refund please"], obj=obj)
        assert "(no matching rules)" in found.output

    def test_add_empty_content_fails(self, service):
        result = CliRunner().invoke(cli, ["rules", "add", "agent-1", "   "], obj={"service": service})

        assert result.exit_code != 0
        assert "content required" in result.output

    def test_delete_unknown(self, service):
        result = CliRunner().invoke(
            cli, ["rules", "delete", "agent-1", "missing"], obj={"service": service}
        )
        assert result.exit_code != 0
        assert "rule not found" in result.output

    def test_update(self, service):
        runner = CliRunner()
        obj = {"service": service}
        rule_id = runner.invoke(cli, ["rules", "add", "agent-1", "Say hello"], obj=obj).output.strip().splitlines()[-1]

        result = runner.invoke(
            cli, ["rules", "update", "agent-1", rule_id, "--content", "Quote the price"], obj=obj
        )

        assert result.exit_code == 0, result.output
        listed = runner.invoke(cli, ["rules", "list", "agent-1"], obj=obj)
        assert "Quote the price" in listed.output


def test_config_defaults_match_cache_window():
    cfg = Config()
    assert cfg.cache.reuse_seconds < cfg.cache.ttl_seconds
