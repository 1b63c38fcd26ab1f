# backend/app/agents/rewrite_agent.py

import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..logging_config import inc_metric
from ..models import PromptVariation
from ..openai_client import TextGenerationClient
from .quality_agent import analyze_prompt_quality, generate_corrections, validate_prompt

log = logging.getLogger("vizora")

MAX_ITERATIONS = 3

COLOR_PSYCHOLOGY = {
    "excitement": "bright reds, electric blues, vibrant oranges",
    "trust": "calming blues, professional navy, clean whites",
    "urgency": "bold reds, warning yellows, contrasting blacks",
    "curiosity": "mysterious purples, intriguing teals, gradient combinations",
    "success": "confident greens, golden yellows, premium blacks",
    "shock": "electric neons, high contrast combinations, dramatic shadows",
}

TRENDING_ELEMENTS = [
    "glowing arrows pointing to key elements",
    "shocked face expressions with wide eyes",
    "before/after comparison splits",
    "money symbols and cash stacks",
    "countdown timers and urgency indicators",
    "VS battles and comparison layouts",
    "red circles highlighting important details",
    "dramatic lighting and shadows",
    "bold, chunky text overlays",
    "celebrity reactions and emotions",
]

INDUSTRY_ELEMENTS = {
    "gaming": "epic battles, character showcases, level progressions, achievement unlocks",
    "tech": "futuristic interfaces, gadget closeups, before/after comparisons, innovation reveals",
    "fitness": "transformation photos, workout intensity, muscle definition, progress tracking",
    "cooking": "mouth-watering close-ups, ingredient reveals, cooking processes, final dish glamour shots",
    "education": "knowledge visualization, step-by-step processes, problem-solving reveals, lightbulb moments",
    "entertainment": "dramatic reactions, celebrity moments, behind-scenes reveals, emotional expressions",
    "finance": "wealth symbols, growth charts, money stacks, success indicators",
    "lifestyle": "aspirational imagery, lifestyle upgrades, personal transformations, aesthetic beauty",
}

AUDIENCE_OPTIMIZATION = {
    "kids": "bright colors, cartoon-like elements, playful fonts, animated characters",
    "teens": "trendy aesthetics, social media style, bold graphics, meme references",
    "young adults": "modern design, lifestyle elements, aspirational content, sleek visuals",
    "professionals": "clean design, sophisticated color schemes, business elements, premium feel",
    "seniors": "clear, readable fonts, classic layouts, trustworthy design elements",
}

PSYCHOLOGICAL_TRIGGERS = {
    "curiosity": ["What happens next will shock you", "The secret behind", "Hidden truth about"],
    "urgency": ["Before it's too late", "Limited time", "Don't miss out"],
    "social_proof": ["Everyone is talking about", "Viral sensation", "Trending now"],
    "exclusivity": ["Exclusive reveal", "Behind the scenes", "Never seen before"],
}

ALGORITHM_KEYWORDS = {
    "gaming": "epic gameplay, boss fight, rare items, speedrun, pro tips",
    "tech": "latest update, breakthrough, comparison, review, unboxing",
    "fitness": "transformation, workout, results, challenge, motivation",
    "cooking": "recipe, delicious, easy, quick, homemade",
    "education": "tutorial, learn, master, guide, explained",
    "entertainment": "reaction, funny, compilation, highlights, exclusive",
}

COMPOSITION_RULES = [
    "rule of thirds composition",
    "subject positioned off-center for dynamic feel",
    "high contrast between foreground and background",
    "clear visual hierarchy with main subject prominent",
    "negative space used effectively",
]

VARIATION_STYLES = [
    "dramatic and intense with high contrast lighting",
    "clean and modern with bold typography focus",
    "energetic and colorful with dynamic composition",
    "mysterious and intriguing with selective lighting",
]

SUPPORTED_INDUSTRIES = sorted(INDUSTRY_ELEMENTS)


def industry_elements(industry: Optional[str]) -> str:
    return INDUSTRY_ELEMENTS.get((industry or "").lower(), "engaging visual elements")


def audience_optimization(target_audience: Optional[str]) -> str:
    return AUDIENCE_OPTIMIZATION.get(
        (target_audience or "").lower(), "universally appealing design"
    )


def add_composition_rule(prompt: str, rng: random.Random) -> str:
    return f"{prompt}, following {rng.choice(COMPOSITION_RULES)}"


def optimize_for_algorithm(prompt: str, industry: Optional[str]) -> str:
    keywords = ALGORITHM_KEYWORDS.get((industry or "").lower(), "trending, viral, amazing")
    return f"{prompt}, incorporating {keywords} visual elements"


def add_psychological_trigger(prompt: str, target_audience: Optional[str]) -> str:
    trigger_type = "curiosity" if "teen" in (target_audience or "").lower() else "urgency"
    return f"{prompt} with {PSYCHOLOGICAL_TRIGGERS[trigger_type][0]} elements"


def generate_prompt_variations(base_prompt: str) -> List[PromptVariation]:
    """A/B test prompts: the same base rendered in four fixed styles."""
    return [
        PromptVariation(
            id=f"variation_{index + 1}",
            style=style,
            prompt=f"{base_prompt}, rendered in {style} style",
            optimized_for="mobile viewing" if index % 2 == 0 else "desktop viewing",
        )
        for index, style in enumerate(VARIATION_STYLES)
    ]


def fallback_prompt(prompt: Optional[str], industry: Optional[str]) -> str:
    return (
        f"Enhanced YouTube thumbnail: {prompt} with high contrast, bold text, "
        f"engaging composition, optimized for {industry or 'general'} audience"
    )


def build_system_prompt(
    prompt: str,
    industry: Optional[str],
    target_audience: Optional[str],
    style_preferences: Optional[str],
) -> str:
    metrics = analyze_prompt_quality(prompt)
    corrections = generate_corrections(metrics)
    correction_lines = "\n".join(f"- {c}" for c in corrections) or "- None"

    return f"""You are an elite YouTube thumbnail optimization AI.

CONTEXT ANALYSIS:
- Industry: {industry or "General"}
- Target Audience: {target_audience or "General viewers"}
- Style Preferences: {style_preferences or "Modern and engaging"}

QUALITY ASSESSMENT OF ORIGINAL PROMPT:
- Specificity Score: {metrics.specificity.score * 100:.0f}%
- Visual Elements Score: {metrics.visual_elements.score * 100:.0f}%
- Emotional Triggers Score: {metrics.emotional_triggers.score * 100:.0f}%
- Click-worthiness Score: {metrics.clickworthiness.score * 100:.0f}%

REQUIRED CORRECTIONS:
{correction_lines}

OPTIMIZATION FRAMEWORK:
1. Color Psychology: {COLOR_PSYCHOLOGY["excitement"]}
2. Industry Elements: {industry_elements(industry)}
3. Audience Optimization: {audience_optimization(target_audience)}
4. Trending Elements: {", ".join(TRENDING_ELEMENTS[:3])}

TECHNICAL SPECIFICATIONS:
- Resolution: 1280x720 pixels (16:9 aspect ratio)
- High contrast ratios for mobile viewing
- Bold, readable typography (minimum 48pt equivalent)
- Clear subject-background separation
- Optimized for 4-6 second attention spans

PROMPT STRUCTURE:
"[Main Subject] + [Action/Emotion] + [Background/Setting] + [Text Overlay] + [Visual Effects] + [Technical Specs]"

Your rewritten prompt must:
1. Fix all identified quality gaps
2. Include specific visual composition instructions
3. Add psychological trigger elements
4. Optimize for the target industry and audience
5. Be clear and actionable for image generation
6. Include specific color, lighting, and composition details
Return only the rewritten prompt."""


def build_user_prompt(current_prompt: str) -> str:
    return (
        f'Original prompt: "{current_prompt}"\n\n'
        "Rewrite this prompt to create an engaging YouTube thumbnail optimized for "
        "AI image generation. Focus on visual clarity, emotional impact, and "
        "click-through optimization."
    )


async def run_rewrite_agent(
    client: TextGenerationClient,
    prompt: str,
    industry: Optional[str] = None,
    target_audience: Optional[str] = None,
    style_preferences: Optional[str] = None,
    iterations: int = 1,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Corrective rewrite loop.

    Each round sends the system/user pair to the text model and validates
    the answer; the loop stops at the first optimal rewrite or after
    `iterations` rounds (capped at MAX_ITERATIONS). The final prompt then
    gets deterministic enhancers and one random composition rule.
    """
    rng = rng or random.Random()
    max_rounds = max(1, min(int(iterations or 1), MAX_ITERATIONS))
    system_prompt = build_system_prompt(prompt, industry, target_audience, style_preferences)

    current_prompt = prompt
    rewritten = prompt
    rounds = 0

    for i in range(max_rounds):
        rounds = i + 1
        log.info(f"✍️ Rewrite round {rounds}/{max_rounds}")
        rewritten = await client.complete(system_prompt, build_user_prompt(current_prompt))

        validation = validate_prompt(rewritten, industry)
        log.info(f"🔎 Round {rounds} validation score: {validation.score:.2f}")
        if validation.is_optimal:
            break
        current_prompt = rewritten

    inc_metric("rewrite_rounds", rounds)

    final_prompt = add_psychological_trigger(
        optimize_for_algorithm(add_composition_rule(rewritten, rng), industry),
        target_audience,
    )
    final_validation = validate_prompt(final_prompt, industry)
    original_quality = analyze_prompt_quality(prompt)

    metadata = {
        "optimizationScore": final_validation.score,
        "appliedCorrections": generate_corrections(original_quality),
        "industryElements": industry_elements(industry),
        "audienceOptimization": audience_optimization(target_audience),
        "trendingElements": TRENDING_ELEMENTS[:3],
        "originalQuality": original_quality.to_json(),
        "iterationsUsed": rounds,
        "model": client.model,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return {
        "success": True,
        "originalPrompt": prompt,
        "rewrittenPrompt": final_prompt,
        "optimizationScore": final_validation.score,
        "variations": [v.to_json() for v in generate_prompt_variations(final_prompt)],
        "metadata": metadata,
        "qualityInsights": {
            "improvements": final_validation.improvements,
            "isOptimal": final_validation.is_optimal,
            "suggestedNextSteps": (
                ["Ready for image generation"]
                if final_validation.is_optimal
                else ["Consider additional refinement", "Test with different emotional triggers"]
            ),
        },
    }
