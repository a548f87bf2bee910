"""The tools offered to the grievance assistant and the executors of the gated ones."""

from enum import Enum
from typing import Annotated, Any, Awaitable, Callable, Dict, Iterable, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from seva.core.exceptions import SchemeSearchError, ToolRegistrationError
from seva.core.logger import get_logger
from seva.core.tools import ConfirmationPolicy, ExecutionContext, ExecutorTable, ToolExecutor, ToolRegistry
from seva.llm.openai_api import OpenAIToolRegistry
from .client import GrmClient
from .scheme_search import SchemeSearchClient

logger = get_logger(__name__)


class ToolName(str, Enum):
    """Names of the assistant's tools, as seen by the model and the client UI."""

    CLASSIFY_GRIEVANCE = "classifyGrievance"
    CREATE_GRIEVANCE = "createGrievance"
    SCHEME_SEARCH = "performMySchemeSearch"
    DOCUMENT_UPLOAD = "documentUpload"
    ADDITIONAL_SUPPORT = "additionalSupport"


# Tools performed by the chat UI. Value: result used when the UI sends back an empty one.
UI_TOOL_FALLBACKS: Mapping[str, Optional[str]] = {
    ToolName.DOCUMENT_UPLOAD.value: None,
    ToolName.ADDITIONAL_SUPPORT.value: "A representative from a support group may reach out to you.",
}
UI_TOOLS = frozenset(UI_TOOL_FALLBACKS)


class DocumentUploadArgs(BaseModel):
    """Arguments of the document upload request shown by the client."""

    prompt: str = Field(description="Short message asking the citizen for the supporting document(s) needed.")


class AdditionalSupportArgs(BaseModel):
    """Arguments of the hand-off to a human support group."""

    reason: str = Field(description="Why the citizen needs support beyond filing the grievance.")


class GrievanceToolkit:
    """
    Implementations of the grievance tools.

    Each tool is a method whose signature describes its arguments to the model.
    :meth:`register_into` decides per tool whether it executes directly or waits for the
    citizen's approval.
    """

    def __init__(self, grm_client: GrmClient, scheme_search: SchemeSearchClient) -> None:
        self._grm = grm_client
        self._scheme_search = scheme_search

    async def classify_grievance(
        self, query: Annotated[str, Field(description="User grievance text")]
    ) -> Any:
        """Classify the given user category to the right department, category and subcategory."""
        return await self._grm.classify(query)

    async def create_grievance(
        self,
        title: Annotated[str, Field(description="A short, clear title summarizing the grievance issue")],
        description: Annotated[
            str,
            Field(
                description=(
                    "MUST include ALL of the following in a structured format: 1) Personal details (full name, "
                    "contact info, complete address with PIN code), 2) Detailed description of the issue with dates "
                    "and specifics, 3) Category-specific required information, 4) Timeline of incidents and previous "
                    "follow-ups, 5) Expected resolution. DO NOT call this function if any mandatory information is "
                    "missing."
                )
            ),
        ],
        category: Annotated[
            str,
            Field(description="Main category of the grievance. If unsure or not a grievance, use 'Other' or 'None'"),
        ],
        cpgrams_category: Annotated[
            str,
            Field(description="Full category name along with subcategories extracted from the CPGRAMS classification"),
        ],
        priority: Annotated[
            Literal["low", "medium", "high"],
            Field(description="Priority level based on the urgency and impact of the grievance"),
        ],
    ) -> Any:
        """Create a new grievance in the system. IMPORTANT: DO NOT call this function until you have collected ALL mandatory information from the user. The description field MUST include all personal details and category-specific required information in a structured format."""
        return await self._grm.create_grievance(
            title=title,
            description=description,
            category=category,
            cpgrams_category=cpgrams_category,
            priority=priority,
        )

    async def perform_my_scheme_search(
        self,
        query: Annotated[
            str,
            Field(
                description=(
                    "Search query. This must be based solely on the user query, but optimized for search, and must "
                    "not contain any information not provided by the user."
                )
            ),
        ],
    ) -> Dict[str, Any]:
        """Search the *.myscheme.gov.in for any scheme-related grievance, in case their grievance can be immediately resolved using information on the myscheme website."""
        try:
            return await self._scheme_search.search(query)
        except SchemeSearchError as exc:
            logger.error(f"Error performing MyScheme search: {exc}")
            return {"success": False, "error": exc.message}

    def register_into(self, registry: ToolRegistry, confirm: Iterable[str] = (ToolName.CREATE_GRIEVANCE.value,)) -> ExecutorTable:
        """Register every assistant tool and build the executor table.

        Args:
            registry: Registry to fill.
            confirm: Names of the grievance tools that wait for the citizen's approval.

        Returns:
            Executors for the tools registered with ``requires_confirmation``.

        Raises:
            ToolRegistrationError: If ``confirm`` names a tool that is not a grievance tool.
        """
        implementations: Dict[str, Callable[..., Awaitable[Any]]] = {
            ToolName.CLASSIFY_GRIEVANCE.value: self.classify_grievance,
            ToolName.CREATE_GRIEVANCE.value: self.create_grievance,
            ToolName.SCHEME_SEARCH.value: self.perform_my_scheme_search,
        }
        gated = {str(getattr(name, "value", name)) for name in confirm}
        unknown = gated - implementations.keys()
        if unknown:
            raise ToolRegistrationError(f"Cannot require confirmation for unknown tool(s): {sorted(unknown)}")

        for name, func in implementations.items():
            registry.register(name, func=func, requires_confirmation=name in gated)

        registry.declare(
            ToolName.DOCUMENT_UPLOAD.value,
            "Ask the citizen to upload supporting documents (receipts, letters, identity proof) for the grievance. "
            "The upload happens in the chat window; its result is the uploaded file reference.",
            DocumentUploadArgs,
        )
        registry.declare(
            ToolName.ADDITIONAL_SUPPORT.value,
            "Offer the citizen a hand-off to a support group when they are in distress or need help beyond "
            "filing the grievance.",
            AdditionalSupportArgs,
        )

        executors = ExecutorTable(registry)
        for name in sorted(gated):
            executors.register(name, _as_executor(implementations[name]))
        return executors


def _as_executor(func: Callable[..., Awaitable[Any]]) -> ToolExecutor:
    """Adapt a keyword-argument tool implementation to the ``(args, context)`` executor shape."""

    async def executor(args: Dict[str, Any], context: ExecutionContext) -> Any:
        logger.debug(f"Running approved call {context.tool_call_id} with {len(context.messages)} message(s) of history.")
        return await func(**args)

    return executor


def build_tooling(
    toolkit: GrievanceToolkit, confirm: Iterable[str] = (ToolName.CREATE_GRIEVANCE.value,)
) -> Tuple[OpenAIToolRegistry, ExecutorTable]:
    """Create the assistant's registry and executor table."""
    registry = OpenAIToolRegistry()
    executors = toolkit.register_into(registry, confirm=confirm)
    return registry, executors


def confirmation_policy(registry: ToolRegistry) -> ConfirmationPolicy:
    """Confirmation policy of the assistant, with the chat UI's tools deferred to the client."""
    return ConfirmationPolicy(registry, ui_deferred=UI_TOOL_FALLBACKS)
