"""
Grimoire - Main Entry Point

A rules engine and command-line companion for casting spells in
Mage: The Awakening 2e. Tracks a character's Gnosis, Arcana and spellbook,
and works out dice pools, reach costs, potency and Mana for each casting.

This module provides the main entry point and the Grimoire class that
coordinates the character, the catalogs and the casting engine.
"""

import sys
from pathlib import Path

# Add the project root to the Python path for module discovery
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import argparse
import logging
from dataclasses import dataclass, field
from typing import Optional

from src.content_loader.reach_catalog import ReachCatalog, get_reach_catalog
from src.content_loader.spell_registry import SpellRegistry
from src.data_models import (
    ARCANA_NAMES,
    CastingType,
    CharacterState,
    DiceRoller,
    SpellDefinition,
)
from src.game_state.session_manager import STORAGE_KEY, CharacterStore
from src.observability.run_log import get_run_log
from src.spellcasting.casting import (
    CastingRequest,
    CastingSummary,
    CastResult,
    SpellCaster,
)
from src.spellcasting.reach_selection import ReachSelection
from src.spellcasting.spell_combiner import (
    CombinationRejection,
    CombinationResult,
    combine_spells,
)


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class GrimoireConfig:
    """Configuration for a Grimoire session."""

    data_dir: Path = field(default_factory=lambda: Path("data"))
    spell_dir: Optional[Path] = None  # Defaults to <data_dir>/content/spells
    save_dir: Path = field(default_factory=lambda: Path("saves"))
    storage_key: str = STORAGE_KEY

    # Runtime options
    seed: Optional[int] = None
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)
        if isinstance(self.save_dir, str):
            self.save_dir = Path(self.save_dir)
        if isinstance(self.spell_dir, str):
            self.spell_dir = Path(self.spell_dir)
        if self.spell_dir is None:
            self.spell_dir = self.data_dir / "content" / "spells"


# =============================================================================
# GRIMOIRE CLASS
# =============================================================================

class Grimoire:
    """
    Coordinates the character, the spell and reach catalogs, and the caster.

    Every change to the character is saved straight away.
    """

    def __init__(
        self,
        config: Optional[GrimoireConfig] = None,
        registry: Optional[SpellRegistry] = None,
        catalog: Optional[ReachCatalog] = None,
        caster: Optional[SpellCaster] = None,
    ):
        self.config = config or GrimoireConfig()

        if self.config.seed is not None:
            DiceRoller.set_seed(self.config.seed)
            get_run_log().set_seed(self.config.seed)

        self.store = CharacterStore(self.config.save_dir, self.config.storage_key)
        self.character: CharacterState = self.store.load_or_default()

        if registry is None:
            registry = SpellRegistry()
            registry.load_from_directory(self.config.spell_dir)
        self.registry = registry

        self.catalog = catalog if catalog is not None else get_reach_catalog()
        self.caster = caster or SpellCaster(self.catalog)
        logger.info(f"Grimoire ready with {self.registry.spell_count} catalog spells")

    def save(self) -> bool:
        return self.store.save(self.character)

    # =========================================================================
    # CHARACTER
    # =========================================================================

    def set_gnosis(self, value: int) -> int:
        gnosis = self.character.set_gnosis(value)
        self.save()
        return gnosis

    def set_arcanum(self, arcanum: str, value: int) -> int:
        rating = self.character.set_arcanum(arcanum, value)
        self.save()
        return rating

    def toggle_major_arcanum(self, arcanum: str) -> bool:
        flagged = self.character.toggle_major_arcanum(arcanum)
        self.save()
        return flagged

    def set_yantras(self, value: int) -> int:
        yantras = self.character.set_yantras(value)
        self.save()
        return yantras

    # =========================================================================
    # SPELLBOOK
    # =========================================================================

    def browse(
        self,
        arcanum: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[SpellDefinition]:
        """Catalog spells the character can cast, optionally by arcanum or search term."""
        values = self.character.arcana_values
        if search:
            spells = self.registry.search(search, values).spells
            if arcanum:
                spells = [s for s in spells if s.arcanum_key == arcanum.lower()]
            return spells
        return self.registry.get_castable(values, arcanum).spells

    def learn(self, name: str, casting_type: CastingType = CastingType.IMPROVISED) -> bool:
        """Add a catalog spell to the spellbook with the given casting type."""
        lookup = self.registry.get_by_name(name)
        if not lookup.found:
            logger.warning(lookup.error)
            return False
        added = self.character.add_spell(lookup.spell.with_casting_type(casting_type))
        if added:
            get_run_log().log_custom("learn", {"spell": lookup.spell.name, "casting_type": casting_type.value})
            self.save()
        return added

    def forget(self, name: str, casting_type: Optional[CastingType] = None) -> bool:
        spell = self.character.find_spell(name, casting_type)
        if spell is None:
            return False
        removed = self.character.remove_spell(spell)
        if removed:
            self.save()
        return removed

    def combine(self, names: list[str], combined_name: str) -> CombinationResult:
        """
        Combine spellbook spells into a new spellbook entry.

        A name known under several casting types resolves to a non-rote entry
        when there is one. Names not in the spellbook, or a combined name that
        is already taken, reject the combination.
        """
        spells = []
        unknown = []
        for name in names:
            spell = self._find_component(name)
            if spell is None:
                logger.warning(f"Spell not in spellbook: {name}")
                unknown.append(name)
                continue
            spells.append(spell)

        result = combine_spells(
            spells,
            self.character.arcana_values,
            combined_name,
            self.character.gnosis,
            unknown_names=unknown,
            taken_names=[s.name for s in self.character.user_spells],
        )
        if not result.success or result.spell is None:
            return result

        if not self.character.add_spell(result.spell):
            logger.warning(f"Spellbook already holds {result.spell.name}")
            result.check.rejections.append(CombinationRejection.NAME_TAKEN)
            return CombinationResult(success=False, check=result.check)

        self.save()
        return result

    def _find_component(self, name: str) -> Optional[SpellDefinition]:
        """Spellbook entry to use as a combination component, preferring non-rotes."""
        matches = [s for s in self.character.user_spells if s.name == name]
        for spell in matches:
            if spell.casting_type != CastingType.ROTE:
                return spell
        return matches[0] if matches else None

    # =========================================================================
    # CASTING
    # =========================================================================

    def build_request(
        self,
        name: str,
        casting_type: Optional[CastingType] = None,
        reaches: Optional[list[str]] = None,
        yantras: Optional[int] = None,
        potency_boost: int = 0,
        dice_pool_modifier: int = 0,
        reach_modifier: int = 0,
        mana_modifier: int = 0,
        eight_again: bool = False,
        nine_again: bool = False,
    ) -> Optional[CastingRequest]:
        """A casting request for a spellbook spell, or None if it is not known."""
        spell = self.character.find_spell(name, casting_type)
        if spell is None:
            return None
        return CastingRequest(
            spell=spell,
            selection=ReachSelection.from_names(reaches or [], self.catalog),
            yantras=self.character.yantras if yantras is None else max(0, yantras),
            potency_boost=potency_boost,
            dice_pool_modifier=dice_pool_modifier,
            reach_modifier=reach_modifier,
            mana_modifier=mana_modifier,
            eight_again=eight_again,
            nine_again=nine_again,
        )

    def summarize(self, request: CastingRequest) -> CastingSummary:
        return self.caster.summarize(self.character, request)

    def cast(self, request: CastingRequest) -> CastResult:
        return self.caster.cast(self.character, request)

    # =========================================================================
    # DISPLAY
    # =========================================================================

    def status(self) -> str:
        """Character sheet as text."""
        char = self.character
        lines = [
            f"Gnosis: {char.gnosis}",
            f"Yantras: {char.yantras}",
            "Arcana:",
        ]
        for name in ARCANA_NAMES:
            major = " (major)" if char.is_major_arcanum(name) else ""
            lines.append(f"  {name.capitalize():<8} {char.arcana_values.get(name, 0)}{major}")
        lines.append(f"Spellbook ({len(char.user_spells)}):")
        for spell in char.user_spells:
            lines.append(f"  {spell.name} [{spell.casting_type.value}] {spell.arcanum} {spell.level}")
        return "\n".join(lines)


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_summary(summary: CastingSummary) -> str:
    lines = [
        f"{summary.spell_name} ({summary.casting_type.value})",
        f"  Dice pool: {summary.dice_pool}" + (" (chance die)" if summary.is_chance_die else ""),
        f"  Primary factor: {summary.primary_factor}",
        f"  Potency: {summary.potency}",
        f"  Mana: {summary.mana_cost}",
        f"  Reaches: {summary.reach_effects.total_reach_cost} used, "
        f"{summary.available_reaches} free",
    ]
    if summary.is_overreach:
        lines.append(f"  WARNING: overreaching by {-summary.reaches_remaining}")
    for reach in summary.selected_reaches:
        lines.append(f"    - {reach.name}")
    return "\n".join(lines)


def format_result(result: CastResult) -> str:
    outcome = result.outcome
    lines = [
        format_summary(result.summary),
        f"  Rolls: {outcome.rolls}",
        f"  Successes: {outcome.successes}",
    ]
    if outcome.dramatic_failure:
        lines.append("  DRAMATIC FAILURE")
    return "\n".join(lines)


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def _casting_type(value: str) -> CastingType:
    try:
        return CastingType(value.lower())
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown casting type: {value}")


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Grimoire - spellcasting calculator for Mage: The Awakening 2e",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src.main stats
  python -m src.main set-arcanum death 3
  python -m src.main learn "Unseen Aegis" --type rote
  python -m src.main cast "Unseen Aegis" --reach "Duration: 5 turns"
  python -m src.main combine "Combined Ward" "Unseen Aegis" "Forensic Gaze"
        """
    )

    # General options
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data"),
        help="Directory for reference data (default: data)",
    )
    parser.add_argument(
        "--spell-dir",
        type=Path,
        help="Directory of spell catalog JSON files (default: <data-dir>/content/spells)",
    )
    parser.add_argument(
        "--save-dir",
        type=Path,
        default=Path("saves"),
        help="Directory for the saved character (default: saves)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducible rolls",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    commands = parser.add_subparsers(dest="command")

    commands.add_parser("stats", help="Show the character")

    gnosis = commands.add_parser("set-gnosis", help="Set Gnosis (1-10)")
    gnosis.add_argument("value", type=int)

    arcanum = commands.add_parser("set-arcanum", help="Set an Arcanum rating (0-5)")
    arcanum.add_argument("arcanum", choices=ARCANA_NAMES)
    arcanum.add_argument("value", type=int)

    major = commands.add_parser("major", help="Toggle an Arcanum as a major arcanum")
    major.add_argument("arcanum", choices=ARCANA_NAMES)

    yantras = commands.add_parser("yantras", help="Set yantra bonus dice")
    yantras.add_argument("value", type=int)

    spells = commands.add_parser("spells", help="List castable catalog spells")
    spells.add_argument("--arcanum", choices=ARCANA_NAMES)
    spells.add_argument("--search", help="Search names and descriptions")

    commands.add_parser("reaches", help="List the reach catalog")

    learn = commands.add_parser("learn", help="Add a catalog spell to the spellbook")
    learn.add_argument("name")
    learn.add_argument("--type", type=_casting_type, default=CastingType.IMPROVISED)

    forget = commands.add_parser("forget", help="Remove a spell from the spellbook")
    forget.add_argument("name")
    forget.add_argument("--type", type=_casting_type)

    combine = commands.add_parser("combine", help="Combine spellbook spells")
    combine.add_argument("combined_name")
    combine.add_argument("spells", nargs="+")

    cast = commands.add_parser("cast", help="Cast a spellbook spell")
    cast.add_argument("name")
    cast.add_argument("--type", type=_casting_type)
    cast.add_argument("--reach", action="append", default=[], help="Reach to apply (repeatable)")
    cast.add_argument("--yantras", type=int, help="Override the character's yantra dice")
    cast.add_argument("--boost", type=int, default=0, help="Potency boost (each costs 2 dice)")
    cast.add_argument("--dice-mod", type=int, default=0, help="Manual dice pool modifier")
    cast.add_argument("--reach-mod", type=int, default=0, help="Manual free reach modifier")
    cast.add_argument("--mana-mod", type=int, default=0, help="Manual Mana modifier")
    cast.add_argument("--eight-again", action="store_true")
    cast.add_argument("--nine-again", action="store_true")
    cast.add_argument("--dry-run", action="store_true", help="Show the summary without rolling")

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> GrimoireConfig:
    """Create GrimoireConfig from parsed arguments."""
    return GrimoireConfig(
        data_dir=args.data_dir,
        spell_dir=args.spell_dir,
        save_dir=args.save_dir,
        seed=args.seed,
        verbose=args.verbose,
    )


# =============================================================================
# COMMANDS
# =============================================================================

def run_command(grimoire: Grimoire, args: argparse.Namespace) -> int:
    """Run one parsed command. Returns a process exit code."""
    command = args.command or "stats"

    if command == "stats":
        print(grimoire.status())
    elif command == "set-gnosis":
        print(f"Gnosis: {grimoire.set_gnosis(args.value)}")
    elif command == "set-arcanum":
        print(f"{args.arcanum.capitalize()}: {grimoire.set_arcanum(args.arcanum, args.value)}")
    elif command == "major":
        flagged = grimoire.toggle_major_arcanum(args.arcanum)
        print(f"{args.arcanum.capitalize()} is {'now' if flagged else 'not'} a major arcanum")
    elif command == "yantras":
        print(f"Yantras: {grimoire.set_yantras(args.value)}")
    elif command == "spells":
        for spell in grimoire.browse(args.arcanum, args.search):
            print(f"{spell.name} ({spell.arcanum} {spell.level}) - {spell.short_description}")
    elif command == "reaches":
        for category, reaches in grimoire.catalog.by_category().items():
            print(f"{category}:")
            for reach in reaches:
                print(f"  {reach.label}")
    elif command == "learn":
        if not grimoire.learn(args.name, args.type):
            print(f"Could not learn {args.name}")
            return 1
        print(f"Learned {args.name} ({args.type.value})")
    elif command == "forget":
        if not grimoire.forget(args.name, args.type):
            print(f"{args.name} is not in the spellbook")
            return 1
        print(f"Forgot {args.name}")
    elif command == "combine":
        result = grimoire.combine(args.spells, args.combined_name)
        if not result.success:
            for message in result.check.messages:
                print(message)
            for name in result.check.unknown_names:
                print(f"  Not in the spellbook: {name}")
            return 1
        if result.check.cast_as_improvised:
            print("Mixing praxes with other spells: the combination is cast as improvised")
        print(f"Created {result.spell.name} (-{result.spell.additional_penalty} dice)")
    elif command == "cast":
        request = grimoire.build_request(
            args.name,
            casting_type=args.type,
            reaches=args.reach,
            yantras=args.yantras,
            potency_boost=args.boost,
            dice_pool_modifier=args.dice_mod,
            reach_modifier=args.reach_mod,
            mana_modifier=args.mana_mod,
            eight_again=args.eight_again,
            nine_again=args.nine_again,
        )
        if request is None:
            print(f"{args.name} is not in the spellbook")
            return 1
        if args.dry_run:
            print(format_summary(grimoire.summarize(request)))
        else:
            print(format_result(grimoire.cast(request)))

    return 0


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    config = create_config_from_args(args)
    grimoire = Grimoire(config)
    return run_command(grimoire, args)


if __name__ == "__main__":
    sys.exit(main())
