from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Sequence

from ..datamodels import Article
from .base import Source
from .topics import classify_query

logger = logging.getLogger("technews")

# Canned entries carry "hours_ago" instead of a timestamp so results always look fresh.
TOP_HEADLINES: Sequence[Dict[str, Any]] = (
    {
        "title": "OpenAI's CEO says he's scared of GPT-5",
        "description": "Sam Altman expresses concerns about the potential risks and capabilities of OpenAI's next-generation AI model.",
        "content": (
            "OpenAI CEO Sam Altman has expressed genuine concerns about GPT-5, the company's "
            "next-generation AI model currently in development. In candid interviews, Altman "
            "discussed the capabilities that GPT-5 is expected to demonstrate and the "
            "responsibility that comes with such powerful technology."
        ),
        "url": "https://www.techradar.com/ai-platforms-assistants/chatgpt/openais-ceo-says-hes-scared-of-gpt-5",
        "imageUrl": "https://platform.theverge.com/wp-content/uploads/sites/2/chorus/uploads/chorus_asset/file/25447224/AI_Overviews___Complex_Questions__still_.jpg",
        "hours_ago": 2,
    },
    {
        "title": "Adding support for Google Pay within Android WebView",
        "description": "Google announces native Google Pay support in Android WebView, enabling seamless payments in embedded web checkouts.",
        "content": (
            "Google has announced that Google Pay is now supported within Android WebView, "
            "starting with version 137. Android apps that embed web checkout processes can now "
            "offer native Google Pay functionality to their users."
        ),
        "url": "https://developers.googleblog.com/en/adding-support-for-google-pay-within-android-webview/",
        "imageUrl": "https://techcrunch.com/wp-content/uploads/2025/07/imgi_9_Blog-Hero1920b-1600x900-1.png",
        "hours_ago": 4,
    },
    {
        "title": "Flutter 3.27 Release Notes - Latest Features and Improvements",
        "description": "Flutter 3.27 introduces new Material Design 3 components, enhanced performance optimizations, and improved developer tooling.",
        "content": (
            "Flutter 3.27 brings new Material Design 3 components, a faster rendering pipeline "
            "and better debugging tools. Hot reload is quicker, error messages are more "
            "informative and the widget inspector shows more detail."
        ),
        "url": "https://docs.flutter.dev/release/release-notes/release-notes-3.27.0",
        "imageUrl": "https://docs.flutter.dev/assets/images/shared/brand/flutter/logo/flutter-logomark-320px.png",
        "hours_ago": 6,
    },
    {
        "title": "GitHub Copilot: Meet the new coding agent",
        "description": "Implementing features has never been easier: Just assign a task or issue to Copilot. It runs in the background with GitHub Actions and submits its work as a pull request.",
        "content": (
            "GitHub announced a coding agent for GitHub Copilot. Developers assign issues to "
            "Copilot, which works in a GitHub Actions environment and pushes commits to a draft "
            "pull request while logging its progress."
        ),
        "url": "https://github.blog/news-insights/product-news/github-copilot-meet-the-new-coding-agent/",
        "imageUrl": "https://github.githubassets.com/assets/GitHub-Mark-ea2971cee799.png",
        "hours_ago": 8,
    },
    {
        "title": "Tesla founder disappointed Musk canceled $25,000 EV and made dumpster-looking truck",
        "description": "Tesla's original co-founder Martin Eberhard criticizes Elon Musk for canceling the affordable electric car program and developing the Cybertruck.",
        "content": (
            "Martin Eberhard, who co-founded Tesla in 2003, said he was disappointed that the "
            "company dropped its $25,000 electric car in favour of the Cybertruck, arguing that "
            "the world needs affordable electric vehicles."
        ),
        "url": "https://electrek.co/2025/07/28/tesla-founder-disapointed-musk-canceled-25000-ev-dumpster-lookin-truck/",
        "imageUrl": "https://images.unsplash.com/photo-1560958089-b8a1929cea89?w=400&h=250&fit=crop",
        "hours_ago": 10,
    },
    {
        "title": "Meta Quest 3S launches as affordable entry into mixed reality",
        "description": "Meta releases Quest 3S as a more affordable alternative to Quest 3, bringing mixed reality to mainstream consumers.",
        "content": (
            "The Quest 3S keeps the Snapdragon XR2 Gen 2 processor and hand tracking of the "
            "Quest 3 at a lower price, trading away some display resolution and storage."
        ),
        "url": "https://www.roadtovr.com/meta-quest-3s-review-affordable-mixed-reality/",
        "imageUrl": "https://images.unsplash.com/photo-1592478411213-6153e4ebc696?w=400&h=250&fit=crop",
        "hours_ago": 12,
    },
    {
        "title": "Apple Intelligence arrives on iPhone, iPad, and Mac with iOS 18.1",
        "description": "Apple launches its AI platform with enhanced Siri, writing tools, and intelligent features across devices.",
        "content": (
            "Apple Intelligence ships with iOS 18.1, iPadOS 18.1 and macOS Sequoia 15.1, adding "
            "a redesigned Siri, writing tools and photo clean-up. Most processing happens on "
            "device, with Private Cloud Compute for heavier tasks."
        ),
        "url": "https://www.apple.com/newsroom/2024/10/apple-intelligence-is-available-today-on-iphone-ipad-and-mac/",
        "imageUrl": "https://images.unsplash.com/photo-1611532736597-de2d4265fba3?w=400&h=250&fit=crop",
        "hours_ago": 14,
    },
    {
        "title": "OpenAI announces o1 reasoning model with enhanced problem-solving capabilities",
        "description": "OpenAI releases o1, a new AI model designed for complex reasoning tasks in science, coding, and mathematics.",
        "content": (
            "o1 spends more time reasoning through a problem before answering. It ranks in the "
            "89th percentile on competitive programming questions and comes in two variants, "
            "o1-preview and o1-mini."
        ),
        "url": "https://openai.com/index/learning-to-reason-with-llms/",
        "imageUrl": "https://images.unsplash.com/photo-1620712943543-bcc4688e7485?w=400&h=250&fit=crop",
        "hours_ago": 16,
    },
)

SEARCH_RESULTS: Dict[str, Sequence[Dict[str, Any]]] = {
    "ai": (
        {
            "title": "Google is redesigning its search engine - and it's AI all the way down",
            "description": "The company is moving fast to stay competitive with new AI search products.",
            "content": "Google is redesigning its search engine to better compete with AI-powered search products...",
            "url": "https://www.theverge.com/2024/5/14/24156455/google-search-ai-results-page-gemini-overview",
            "imageUrl": "https://platform.theverge.com/wp-content/uploads/sites/2/chorus/uploads/chorus_asset/file/25447224/AI_Overviews___Complex_Questions__still_.jpg",
            "hours_ago": 2,
        },
        {
            "title": "OpenAI announces o1 reasoning model with enhanced problem-solving capabilities",
            "description": "OpenAI releases o1, a new AI model designed for complex reasoning tasks in science, coding, and mathematics.",
            "content": "OpenAI has unveiled o1, a new family of AI models specifically designed for complex reasoning tasks...",
            "url": "https://openai.com/index/learning-to-reason-with-llms/",
            "imageUrl": "https://images.unsplash.com/photo-1620712943543-bcc4688e7485?w=400&h=250&fit=crop",
            "hours_ago": 4,
        },
    ),
    "mobile": (
        {
            "title": "Flutter 3.27 Release Notes - Latest Features and Improvements",
            "description": "Flutter 3.27 introduces new Material Design 3 components, enhanced performance optimizations, and improved developer tooling.",
            "content": "Flutter 3.27 introduces significant improvements to the cross-platform development framework...",
            "url": "https://docs.flutter.dev/release/release-notes/release-notes-3.27.0",
            "imageUrl": "https://docs.flutter.dev/assets/images/shared/brand/flutter/logo/flutter-logomark-320px.png",
            "hours_ago": 1,
        },
        {
            "title": "Microsoft Edge is now an AI browser with launch of Copilot Mode",
            "description": "Edge browser gets enhanced AI capabilities with new Copilot integration for smarter web browsing.",
            "content": "Microsoft has officially launched Copilot Mode for Edge browser, transforming it into a fully AI-powered browsing experience...",
            "url": "https://techcrunch.com/2024/07/18/microsoft-edge-is-now-an-ai-browser-with-launch-of-copilot-mode/",
            "imageUrl": "https://techcrunch.com/wp-content/uploads/2025/07/imgi_9_Blog-Hero1920b-1600x900-1.png",
            "hours_ago": 3,
        },
    ),
    "apple": (
        {
            "title": "Apple Intelligence arrives on iPhone, iPad, and Mac with iOS 18.1",
            "description": "Apple launches its AI platform with enhanced Siri, writing tools, and intelligent features across devices.",
            "content": "Apple has officially launched Apple Intelligence with iOS 18.1, iPadOS 18.1, and macOS Sequoia 15.1...",
            "url": "https://www.apple.com/newsroom/2024/10/apple-intelligence-is-available-today-on-iphone-ipad-and-mac/",
            "imageUrl": "https://images.unsplash.com/photo-1611532736597-de2d4265fba3?w=400&h=250&fit=crop",
            "hours_ago": 2,
        },
        {
            "title": "GitHub Copilot Chat in VS Code can now help you fix test failures",
            "description": "GitHub announces improved Copilot Chat integration with VS Code, featuring better code suggestions and enhanced debugging assistance.",
            "content": "GitHub has announced significant improvements to Copilot Chat integration with Visual Studio Code...",
            "url": "https://github.blog/changelog/2024-11-14-github-copilot-chat-in-vs-code-can-now-help-you-fix-test-failures/",
            "imageUrl": "https://github.githubassets.com/assets/GitHub-Mark-ea2971cee799.png",
            "hours_ago": 5,
        },
    ),
    "web": (
        {
            "title": "What's Working in Developer Marketing Today: Insights from Industry Leaders",
            "description": "Draft.dev shares insights from industry leaders on effective developer marketing strategies, emerging trends, and what's getting cut in 2025.",
            "content": "Developer marketing is shifting toward ROI-focused strategies in 2025...",
            "url": "https://draft.dev/learn/whats-working-in-developer-marketing-today",
            "imageUrl": "https://images.unsplash.com/photo-1560958089-b8a1929cea89?w=400&h=250&fit=crop",
            "hours_ago": 1,
        },
        {
            "title": "Meta Quest 3S launches as affordable entry into mixed reality",
            "description": "Meta releases Quest 3S as a more affordable alternative to Quest 3, bringing mixed reality to mainstream consumers.",
            "content": "Meta has launched the Quest 3S, a more affordable version of its popular Quest 3 mixed reality headset...",
            "url": "https://www.roadtovr.com/meta-quest-3s-review-affordable-mixed-reality/",
            "imageUrl": "https://images.unsplash.com/photo-1592478411213-6153e4ebc696?w=400&h=250&fit=crop",
            "hours_ago": 3,
        },
    ),
}


def _build(entries: Sequence[Dict[str, Any]]) -> List[Article]:
    now = datetime.now(timezone.utc)
    return [
        Article(
            title=e["title"],
            description=e.get("description"),
            content=e.get("content"),
            url=e["url"],
            image_url=e.get("imageUrl"),
            published_at=now - timedelta(hours=e["hours_ago"]),
        )
        for e in entries
    ]


class MockSource(Source):
    """Canned technology headlines with simulated network latency."""

    name = "mock"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.latency = float(self.config.get("latency", 0.0))

    async def _simulate_network(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def fetch_headlines(self) -> List[Article]:
        await self._simulate_network()
        return _build(TOP_HEADLINES)

    async def search(self, query: str) -> List[Article]:
        await self._simulate_network()
        bucket = classify_query(query)
        if bucket is None:
            logger.debug("No topic matches query %r", query)
            return []
        logger.debug("Query %r classified as %s", query, bucket)
        return _build(SEARCH_RESULTS[bucket])
