"""
MCP server exposing the Actor Scout tool.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from actor_scout.config import Transport, get_config
from actor_scout.context import create_app_context
from actor_scout.tools.tools import ActorScoutTool

# Configure logging
logger = logging.getLogger(__name__)


def load_local_env():
    # Load .env.local from project root (must run from project root)
    env_local_path = Path('.env.local')
    if env_local_path.exists():
        load_dotenv(env_local_path)
        logger.info("Loaded .env.local for local development")
    else:
        logger.info("No .env.local file found")


def main():
    load_local_env()

    # Load configuration from environment variables and command-line arguments
    config = get_config()

    # Configure logging
    logging.basicConfig(level=config.log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # Create MCP server with configuration
    mcp = FastMCP(host=config.host, port=config.port)

    app_context = create_app_context(config)

    # Register tools
    tools = [
        ActorScoutTool(app_context.scout_service)
    ]

    for tool in tools:
        mcp.add_tool(tool.execute,
                     name=tool.name,
                     title=tool.title,
                     description=tool.description,
                     annotations=tool.annotations,
                     structured_output=getattr(tool, 'structured_output', None))

    # Run server with configured transport
    if config.transport == Transport.STDIO:
        logger.info("Running server with stdio transport")
        mcp.run(transport="stdio")
    elif config.transport == Transport.STREAMABLE_HTTP:
        logger.info(
            f"Running server with Streamable HTTP transport, address http://{config.host}:{config.port}/mcp.")
        mcp.run(transport="streamable-http")
    else:
        logger.error(f"Unexpected transport: {config.transport}")
        raise ValueError(f"Unknown transport: {config.transport}")


if __name__ == "__main__":
    main()
