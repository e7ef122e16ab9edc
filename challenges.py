"""
Challenge catalog, difficulty presets and the configuration assembler.

The catalog is a fixed lookup table keyed by ChallengeType. Presets bundle an
ordered selection with a default time limit.
"""

from typing import Dict, List, NamedTuple, Sequence, Union

from models import ChallengeInstance, ChallengeTemplate, ChallengeType
from logger import builder_logger

# ============================================================================
# CHALLENGE CATALOG
# ============================================================================

CHALLENGE_TEMPLATES: Dict[ChallengeType, ChallengeTemplate] = {
    ChallengeType.FORMAT: ChallengeTemplate(
        type_id=ChallengeType.FORMAT,
        title="Format the Code",
        description="Format this JavaScript code correctly with proper indentation.",
        starter_text='function hello(){console.log("Hello");return true;}',
        canonical_solution='function hello() {\n  console.log("Hello");\n  return true;\n}',
        icon="📝",
    ),
    ChallengeType.DEBUG: ChallengeTemplate(
        type_id=ChallengeType.DEBUG,
        title="Debug the Code",
        description="Fix the bug in this code. The loop should print 0 to 4.",
        starter_text="for (let i = 0; i <= 5; i++) {\n  console.log(i);\n}",
        canonical_solution="for (let i = 0; i < 5; i++) {\n  console.log(i);\n}",
        icon="🐛",
    ),
    ChallengeType.GENERATE: ChallengeTemplate(
        type_id=ChallengeType.GENERATE,
        title="Generate Numbers",
        description="Write code to generate all numbers from 0 to 1000.",
        canonical_solution="for (let i = 0; i <= 1000; i++) {\n  console.log(i);\n}",
        icon="🔢",
    ),
    ChallengeType.TRANSFORM: ChallengeTemplate(
        type_id=ChallengeType.TRANSFORM,
        title="Transform Data",
        description="Convert this CSV to JSON format: name,age\\nJohn,25\\nJane,30",
        canonical_solution='[\n  {"name": "John", "age": 25},\n  {"name": "Jane", "age": 30}\n]',
        icon="🔄",
    ),
    ChallengeType.LOGIC: ChallengeTemplate(
        type_id=ChallengeType.LOGIC,
        title="Crack the Logic",
        description="Write a function isEven(n) that returns true when n is even.",
        starter_text="function isEven(n) {\n  // your code here\n}",
        canonical_solution="function isEven(n) {\n  return n % 2 === 0;\n}",
        icon="🧩",
    ),
    ChallengeType.API: ChallengeTemplate(
        type_id=ChallengeType.API,
        title="Call the API",
        description="Fetch https://api.example.com/data, parse the JSON body and log it.",
        canonical_solution=(
            "fetch('https://api.example.com/data')\n"
            "  .then(res => res.json())\n"
            "  .then(data => console.log(data));"
        ),
        icon="🌐",
    ),
}


def get_template(type_id: Union[ChallengeType, str]) -> ChallengeTemplate:
    """
    Look up a catalog entry. Raises ValueError for an id outside ChallengeType.
    """
    return CHALLENGE_TEMPLATES[ChallengeType(type_id)]


# ============================================================================
# PRESETS
# ============================================================================

class Preset(NamedTuple):
    label: str
    type_ids: tuple
    time_limit_minutes: int


PRESETS: Dict[str, Preset] = {
    "easy": Preset(
        label="Easy Mode",
        type_ids=(ChallengeType.FORMAT, ChallengeType.DEBUG, ChallengeType.GENERATE),
        time_limit_minutes=15,
    ),
    "medium": Preset(
        label="Medium Mode",
        type_ids=(ChallengeType.FORMAT, ChallengeType.DEBUG, ChallengeType.GENERATE,
                  ChallengeType.TRANSFORM),
        time_limit_minutes=10,
    ),
    "hard": Preset(
        label="Hard Mode",
        type_ids=(ChallengeType.FORMAT, ChallengeType.DEBUG, ChallengeType.GENERATE,
                  ChallengeType.TRANSFORM, ChallengeType.LOGIC, ChallengeType.API),
        time_limit_minutes=8,
    ),
}


def get_preset(name: str) -> Preset:
    return PRESETS[name]


# ============================================================================
# CONFIGURATION ASSEMBLER
# ============================================================================

def build_challenges(selected_type_ids: Sequence[Union[ChallengeType, str]]) -> List[ChallengeInstance]:
    """
    Turn an ordered selection into ordered stage instances.

    instance_id is "<type>-<position>", so the same selection always yields the
    same ids. A repeated type gets a second instance with a distinct id and
    identical content.
    """
    challenges = []
    for index, type_id in enumerate(selected_type_ids):
        template = get_template(type_id)
        challenges.append(ChallengeInstance(
            instance_id=f"{template.type_id.value}-{index}",
            **template.model_dump(),
        ))

    builder_logger.debug(f"Assembled {len(challenges)} stages: {[c.instance_id for c in challenges]}")
    return challenges
