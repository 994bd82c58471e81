"""
LangGraph agent: plan (LLM with tools) → tools → plan … → final answer.

The model decides each round whether to call a tool (search_latest_knowledge) or
answer. Tool observations are appended to the scratchpad and fed back to the next
planning call. The iteration cap is applied by the executor via recursion_limit.
"""

import logging
import operator
from collections.abc import Sequence
from typing import Annotated, Literal, TypedDict

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.tools import BaseTool
from langgraph.graph import END, StateGraph

from app.core.config import AGENT_SYSTEM_PROMPT
from app.core.errors import ToolFailureError

logger = logging.getLogger(__name__)


class AgentState(TypedDict):
    input: str
    chat_history: list[BaseMessage]
    agent_scratchpad: Annotated[list[BaseMessage], operator.add]  # AI tool calls + tool observations


def build_prompt(system_prompt: str = AGENT_SYSTEM_PROMPT) -> ChatPromptTemplate:
    """System prompt, prior turns, current input, then this run's tool calls/observations."""
    return ChatPromptTemplate.from_messages(
        [
            ("system", system_prompt),
            MessagesPlaceholder("chat_history"),
            ("human", "{input}"),
            MessagesPlaceholder("agent_scratchpad"),
        ]
    )


def build_agent_graph(
    model: BaseChatModel,
    tools: Sequence[BaseTool],
    system_prompt: str = AGENT_SYSTEM_PROMPT,
):
    """
    Build and compile the agent graph.
    plan → (tools → plan)* → END.
    """
    tools_by_name = {t.name: t for t in tools}
    planner = build_prompt(system_prompt) | model.bind_tools(list(tools))

    async def _plan(state: AgentState) -> dict:
        """Node 1: ask the model for either tool calls or the final answer."""
        scratchpad = state.get("agent_scratchpad") or []
        logger.info("[graph:plan] IN  history_len=%d scratchpad_len=%d", len(state.get("chat_history") or []), len(scratchpad))
        message = await planner.ainvoke(
            {
                "input": state["input"],
                "chat_history": state.get("chat_history") or [],
                "agent_scratchpad": scratchpad,
            },
        )
        logger.info("[graph:plan] OUT tool_calls=%s", [tc["name"] for tc in message.tool_calls])
        return {"agent_scratchpad": [message]}

    async def _act(state: AgentState) -> dict:
        """Node 2: run every tool the model asked for; each result becomes an observation."""
        last = state["agent_scratchpad"][-1]
        observations: list[ToolMessage] = []
        for tool_call in last.tool_calls:
            name = tool_call["name"]
            tool = tools_by_name.get(name)
            if tool is None:
                raise ToolFailureError(f"Unknown tool: {name}")
            logger.info("[graph:act] tool=%s args=%r", name, tool_call.get("args"))
            try:
                observation = await tool.ainvoke({**tool_call, "type": "tool_call"})
            except Exception as e:
                logger.warning("[graph:act] tool=%s failed: %s", name, e)
                raise ToolFailureError(f"Tool {name} failed: {e}") from e
            observations.append(observation)
        return {"agent_scratchpad": observations}

    def _route_after_plan(state: AgentState) -> Literal["tools", "__end__"]:
        """Tool calls → run tools; plain answer → done."""
        last = state["agent_scratchpad"][-1]
        if isinstance(last, AIMessage) and last.tool_calls:
            return "tools"
        return END

    graph = StateGraph(AgentState)

    graph.add_node("agent", _plan)
    graph.add_node("tools", _act)

    graph.set_entry_point("agent")
    graph.add_conditional_edges("agent", _route_after_plan)
    graph.add_edge("tools", "agent")

    return graph.compile()
