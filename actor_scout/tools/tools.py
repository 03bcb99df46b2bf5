"""
MCP tool for finding and test-running Apify Actors.
"""

from typing import List

from mcp.types import ToolAnnotations
from pydantic import BaseModel, Field

from actor_scout.packages.models import FinalRecord
from actor_scout.packages.scout_service import ActorScoutService

SCOUT_TOOL_NAME = 'scout'


class ScoutResults(BaseModel):
    """Container for scout results."""
    results: List[FinalRecord] = Field(description="Ranked candidates with scores and test-run outcomes")
    total: int = Field(description="Total number of results returned")


class ActorScoutTool():
    def __init__(self, scout_service: ActorScoutService):
        self.name = SCOUT_TOOL_NAME
        self.title = 'Find Apify Actors for a task'
        self.description = ('Search the Apify Store for Actors that fit a request, score them, '
                            'and test-run the best ones with generated input.')
        self.annotations = ToolAnnotations(title="Actor Scout Tool", openWorldHint=True)
        self.structured_output = True
        self.scout_service = scout_service

    async def execute(
        self,
        query: str = Field(
            description="What the user wants to do, e.g. 'scrape Amazon product reviews'."),
        max_actors: int = Field(
            default=3,
            description="Number of top ranked Actors to test-run. Default is 3.",
            ge=1,
            le=10),
        skip_evaluation: bool = Field(
            default=False,
            description="Run the first search results without scoring them first.")
    ) -> ScoutResults:
        """Find, score and test-run Apify Actors for a request."""
        records = await self.scout_service.scout(query, max_actors, skip_evaluation=skip_evaluation)
        return ScoutResults(results=records, total=len(records))
