"""
Specialist stage.

A specialist runs a bounded propose -> call tools -> observe loop on the
subtask under the queue cursor. Its intermediate tool traffic stays in a
private transcript; only the final answer reaches the shared conversation.
"""

import logging
from typing import Any, Dict, List, Optional

from travelgraph.graph.context import EngineContext
from travelgraph.graph.stages import SUBTASK_PARSER
from travelgraph.graph.state import ConversationState
from travelgraph.orchestration.schemas import current_task
from travelgraph.shared.errors import ParseError
from travelgraph.shared.messages.turns import ToolCall, assistant_turn, tool_result, user_turn
from travelgraph.shared.tools.invoker import safe_call
from travelgraph.shared.tools.registry import ToolTable
from travelgraph.specialists.prompts import BEST_EFFORT_INSTRUCTION, build_task_prompt


logger = logging.getLogger(__name__)


NO_ANSWER_MESSAGE = "Sorry, the {name} specialist could not produce an answer for this task."


class SpecialistStage:
    """
    Callable node for one specialist.

    Args:
        name: Stage id (equal to the subtask type it handles)
        system_prompt: Specialist system prompt
        tools: Tools the specialist may call
        context: Engine context (model and tool invoker)
        max_iterations: Tool rounds before the best-effort answer
    """

    def __init__(
        self,
        name: str,
        system_prompt: str,
        tools: ToolTable,
        context: EngineContext,
        max_iterations: int = 4,
    ):
        self.name = name
        self.system_prompt = system_prompt
        self.tools = tools
        self.context = context
        self.max_iterations = max_iterations

    def __repr__(self) -> str:
        return f"SpecialistStage(name={self.name!r}, tools={self.tools.names()}, max_iterations={self.max_iterations})"

    def _run_tool(self, call: ToolCall) -> str:
        spec = self.tools.lookup(call.name)
        if spec is None:
            return f"Error: tool '{call.name}' is not available to the {self.name} specialist"
        try:
            payload = spec.parse_args(call.args)
        except ParseError as e:
            return f"Error: {e}"
        content, _ = safe_call(self.context.tool_invoker, call.name, payload.model_dump(exclude_none=True))
        return content

    def __call__(self, state: ConversationState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        task = current_task(state.get("task_queue"))
        _log = f"[session={session_id}] [graph=orchestrator] [node={self.name}] "

        logger.info(f"{_log}Entering node | task={task.type.value if task else None}, tools={self.tools.names()}")

        transcript: List[Dict[str, Any]] = [user_turn(build_task_prompt(task, state.get("memory")))]
        specs = self.tools.specs()
        answer: Optional[str] = None

        for iteration in range(1, self.max_iterations + 1):
            response = self.context.complete(
                session_id=session_id,
                node=self.name,
                messages=transcript,
                tools=specs or None,
                system=self.system_prompt,
            )
            if not response.tool_calls:
                answer = response.text
                logger.info(f"{_log}Answer ready | iteration={iteration}")
                break

            transcript.append(assistant_turn(response.text, tool_calls=response.tool_calls, agent=self.name))
            for call in response.tool_calls:
                transcript.append(tool_result(call.id, self._run_tool(call), call.name))
            logger.info(f"{_log}Tool round {iteration} | calls={[call.name for call in response.tool_calls]}")

        if answer is None:
            logger.warning(f"{_log}Iteration bound ({self.max_iterations}) reached, requesting best-effort answer")
            response = self.context.complete(
                session_id=session_id,
                node=self.name,
                messages=transcript + [user_turn(BEST_EFFORT_INSTRUCTION)],
                tools=specs or None,
                system=self.system_prompt,
                tool_choice="none",
            )
            answer = response.text

        if not answer:
            answer = NO_ANSWER_MESSAGE.format(name=self.name)

        return {
            "messages": [assistant_turn(answer, agent=self.name)],
            "stage": SUBTASK_PARSER,
        }
