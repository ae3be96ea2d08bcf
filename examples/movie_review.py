#!/usr/bin/env python3
"""
Example script demonstrating a structured movie review request.

Builds the same request for every supported provider, prints the request
body each one would receive, then runs one request through a canned
transport so the example works without network access or API keys.
"""

import asyncio
import json

from dotenv import load_dotenv

from schemata import (
    ArraySchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    Provider,
    StringSchema,
    StructuredConfig,
    StructuredGenerator,
    structured,
)
from schemata.core.exceptions import UnsupportedSchemaFeature

# Load environment variables (SCHEMATA_*)
load_dotenv()

MODELS = {
    Provider.OPENAI: "gpt-4o",
    Provider.ANTHROPIC: "claude-sonnet-4-5",
    Provider.GEMINI: "gemini-2.5-flash",
    Provider.OLLAMA: "llama3.1",
    Provider.MISTRAL: "mistral-large-latest",
}

REVIEW_SCHEMA = ObjectSchema(
    name="movie_review",
    description="A structured movie review",
    properties=[
        StringSchema(name="title", description="The movie title"),
        NumberSchema(name="rating", description="Rating out of 5"),
        EnumSchema(name="verdict", allowed_values=["watch", "skip"]),
        ArraySchema(name="highlights", items=StringSchema(name="highlight")),
        StringSchema(name="summary", description="Brief review summary"),
    ],
    required_fields=["title", "rating", "verdict", "highlights", "summary"],
)


class CannedTransport:
    """Returns a fixed OpenAI-shaped response instead of calling the API."""

    async def send(self, request):
        review = {
            "title": "Inception",
            "rating": 4.5,
            "verdict": "watch",
            "highlights": ["the hallway fight", "the score"],
            "summary": "A layered heist film that rewards close attention.",
        }
        return {
            "choices": [{"message": {"role": "assistant", "content": json.dumps(review)}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 180, "completion_tokens": 64},
        }


async def main():
    """Render payloads for every provider and run one request end to end."""
    config = StructuredConfig.from_env()
    config.configure_logging()

    for provider, model in MODELS.items():
        try:
            request = (
                structured(config)
                .using(provider, model)
                .with_schema(REVIEW_SCHEMA)
                .with_system_prompt("You are an expert movie critic")
                .with_prompt("Review the movie Inception")
                .build()
            )
        except UnsupportedSchemaFeature as e:
            print(f"{provider.value}/{model}: {e}")
            continue
        print(f"{provider.value}/{model} ({request.mode.value})")
        print(json.dumps(request.to_payload(), indent=2)[:400])
        print("-" * 60)

    request = (
        structured(config)
        .using(Provider.OPENAI, MODELS[Provider.OPENAI])
        .with_schema(REVIEW_SCHEMA)
        .with_prompt("Review the movie Inception")
        .build()
    )
    result = await StructuredGenerator(CannedTransport(), config).generate(request)

    if result.ok:
        print(f"{result.object['title']}: {result.object['rating']}/5 ({result.object['verdict']})")
    else:
        for diagnostic in result.diagnostics:
            print(f"  {diagnostic}")
    print(f"Tokens used: {result.total_tokens} ({result.finish_reason.value})")


if __name__ == "__main__":
    asyncio.run(main())
