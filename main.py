"""Run one prompt through the pet insurance claims agent."""

import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from datetime import date

from dotenv import load_dotenv

from agents import Runner

from agent import claims_agent
from config import load_config
from portal import ClientManager, FetchPetClient

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class ClaimsContext:
    """Context passed to the agent's tools."""

    today_date: str  # ISO format: YYYY-MM-DD
    client_manager: ClientManager


def get_context(client_manager: ClientManager) -> ClaimsContext:
    return ClaimsContext(today_date=date.today().isoformat(), client_manager=client_manager)


async def main() -> None:
    if not os.environ.get("OPENAI_API_KEY"):
        print("Set OPENAI_API_KEY in your environment.", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    prompt = sys.argv[1] if len(sys.argv) > 1 else "List my pet insurance claims."

    manager = ClientManager(lambda: FetchPetClient(config))
    # Log in while the agent is thinking about the prompt
    manager.start_background_login()
    context = get_context(manager)

    print(f"Prompt: {prompt}\n")
    try:
        result = await Runner.run(claims_agent, prompt, context=context)
        print("\n--- Final output ---\n")
        print(result.final_output)
    finally:
        await manager.cleanup()


if __name__ == "__main__":
    asyncio.run(main())
