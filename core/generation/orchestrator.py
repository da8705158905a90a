"""
Fallback orchestration for commit message generation.

Strategies are tried in order until one succeeds:

1. Multi-step with the remote API (only with a usable credential)
2. Local multi-step analysis (always)
3. Single-step remote API call (only with a usable credential)

An authentication failure stops the chain at once; any other failure is
recorded and the next strategy is tried.
"""
from typing import List, Optional, Sequence

from config.models import Config
from core.contracts.models import StrategyAttempt
from core.contracts.provider import GenerationClient
from core.contracts.strategy import GenerationStrategy
from core.generation.strategies import LocalMultiStepStrategy, RemoteMultiStepStrategy, RemoteSingleStepStrategy
from core.llm.router import get_client, has_usable_credential
from utils.errors import GenerationError, NoChangesError, ProviderError, is_authentication_error
from utils.logger import logger
from utils.trace import GenerationTrace


def create_client(config: Config) -> Optional[GenerationClient]:
    """Creates the remote client when the configured provider has a usable credential."""
    if not has_usable_credential(config.model):
        return None
    try:
        return get_client(config.model)
    except ProviderError as e:
        logger.warning(f"Remote generation disabled: {e}")
        return None


def build_strategies(config: Config, client: Optional[GenerationClient] = None) -> List[GenerationStrategy]:
    """
    Builds the ordered strategy list for one request. Without a client only
    the local strategy is included.
    """
    strategies: List[GenerationStrategy] = []
    if client is not None:
        strategies.append(RemoteMultiStepStrategy(client, max_concurrency=config.generation.max_concurrency))
    strategies.append(LocalMultiStepStrategy())
    if client is not None:
        strategies.append(RemoteSingleStepStrategy(client))
    return strategies


class GenerationOrchestrator:
    """Runs strategies in order and applies the cross-strategy failure policy."""

    def __init__(
        self,
        strategies: Sequence[GenerationStrategy],
        max_length: int,
        trace: Optional[GenerationTrace] = None,
    ):
        self.strategies = list(strategies)
        self.max_length = max_length
        self.trace = trace or GenerationTrace()

    async def run(self, raw_diff: str) -> str:
        """
        Returns the first message produced by a strategy.

        Raises:
            AuthenticationError (or any error classified as one): Immediately,
                without trying the remaining strategies.
            GenerationError: When every strategy failed, listing each attempt.
        """
        attempts: List[StrategyAttempt] = []

        for strategy in self.strategies:
            logger.info(f"Attempting generation with: {strategy.name}")
            try:
                with self.trace.stage(f"strategy:{strategy.name}"):
                    message = await strategy.generate(raw_diff, self.max_length, self.trace)
            except Exception as e:
                if is_authentication_error(e):
                    logger.error(f"{strategy.name} failed with an authentication error: {e}")
                    raise
                logger.warning(f"{strategy.name} failed: {e}")
                attempts.append(StrategyAttempt(strategy=strategy.name, error=str(e)))
                continue

            logger.info(f"Successfully generated with: {strategy.name}")
            return message

        raise GenerationError(attempts)


async def generate_commit_message(
    raw_diff: str,
    config: Config,
    *,
    client: Optional[GenerationClient] = None,
    trace: Optional[GenerationTrace] = None,
) -> str:
    """
    Turns a raw unified diff into a commit message.

    This is the single entry point for the CLI and the git hook.

    Args:
        raw_diff: The diff to describe. It does not need to be pre-validated.
        config: The application configuration.
        client: Optional remote client; overrides provider/credential lookup.
        trace: Optional timing recorder owned by the caller for this request.

    Raises:
        NoChangesError: If the diff is empty.
        AuthenticationError: If the remote credential was rejected.
        GenerationError: If every strategy failed.
    """
    if not raw_diff or not raw_diff.strip():
        raise NoChangesError("No changes to describe: the diff is empty.")

    owns_client = client is None
    if owns_client:
        client = create_client(config)

    orchestrator = GenerationOrchestrator(build_strategies(config, client), config.output.max_commit_length, trace)
    try:
        return await orchestrator.run(raw_diff)
    finally:
        # Analyses still in flight after an authentication error fail here; their results are unused.
        if owns_client and client is not None:
            await client.aclose()
