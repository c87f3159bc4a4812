#!/usr/bin/env python3
"""
Vocora CLI Interface
Command-line practice sessions: generate stories from your words, hover
words for definitions, and grow your vocabulary list
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vocora.core.annotator import Annotator, RenderedSpan
from vocora.core.config import VocoraConfig
from vocora.core.dictionary import DictionaryClient
from vocora.core.images import ImageGenerator
from vocora.core.practice import PracticeSession
from vocora.core.story import StoryGenerator
from vocora.core.tokenizer import normalize, normalize_words
from vocora.core.vocab_store import build_store

console = Console()
logger = logging.getLogger(__name__)


def spans_to_text(spans: List[RenderedSpan]) -> Text:
    """Render annotated spans for the terminal; highlighted words on yellow"""
    text = Text()
    for span in spans:
        if span.highlighted:
            text.append(span.text, style="bold black on yellow")
        elif span.interactive:
            text.append(span.text)
        else:
            text.append(span.text, style="dim")
    return text


def popover_panel(spans: List[RenderedSpan]) -> Optional[Panel]:
    """Panel for the focused span's definition, if one is showing"""
    for span in spans:
        if span.popover:
            pop = span.popover
            body = f"[italic]{pop.part_of_speech}[/italic]\n{pop.definition}"
            if pop.can_add:
                body += "\n\n[dim]/add to put it on your list[/dim]"
            return Panel(body, title=f"📖 {pop.word}", border_style="green")
    return None


class VocoraCLI:
    """Command-line interface for Vocora practice sessions"""

    def __init__(self, config: VocoraConfig, user_id: Optional[str] = None):
        self.config = config
        self.dictionary = DictionaryClient(config.api)
        self.store = build_store(config.store)

        story_generator = None
        try:
            story_generator = StoryGenerator(config.models, config.api)
        except Exception as e:
            console.print(f"⚠️  Story generation unavailable: {e}", style="yellow")

        image_generator = None
        try:
            image_generator = ImageGenerator(config.models, config.api)
        except Exception as e:
            console.print(f"⚠️  Image generation unavailable: {e}", style="yellow")

        self.session = PracticeSession(
            store=self.store,
            story_generator=story_generator,
            image_generator=image_generator,
            annotator=Annotator(lookup=self.dictionary.define),
            user_id=user_id
        )
        self.history = []

    def _report(self):
        if self.session.message:
            console.print(f"❌ {self.session.message}", style="red")

    def show_words(self):
        """Show the vocabulary list"""
        words = self.session.words
        if not words:
            console.print("Your word list is empty.", style="yellow")
            return

        table = Table(title="📚 Your Words")
        table.add_column("#", style="dim")
        table.add_column("Word", style="green")
        table.add_column("Selected", style="cyan")
        selected = normalize_words(self.session.selected)
        for i, word in enumerate(words, 1):
            table.add_row(str(i), word, "✓" if normalize(word) in selected else "")
        console.print(table)

    def show_story(self, mark: str = "selected"):
        """Print the current story with highlights and any open definition"""
        if not self.session.story:
            console.print("No story yet. Use /story or /all.", style="yellow")
            return

        spans = self.session.render_story(mark)
        console.print(Panel(spans_to_text(spans), title="📝 Story", border_style="cyan"))
        panel = popover_panel(spans)
        if panel:
            console.print(panel)

    def generate(self, words: Optional[List[str]] = None, practice_all: bool = False):
        """Generate a story and remember it in the history"""
        if self.session.story_generator is None:
            console.print("❌ Story generation is not configured.", style="red")
            return None

        with console.status("[bold cyan]Writing your story..."):
            story = self.session.practice_all() if practice_all else self.session.generate_story(words)

        if story is None:
            self._report()
            return None

        self.history.append({
            "timestamp": datetime.now().isoformat(),
            "words": self.session.story_words,
            "story": story
        })
        self.show_story()
        return story

    def illustrate(self):
        with console.status("[bold green]Painting..."):
            url = self.session.generate_image()
        if url is None:
            self._report()
            return None

        if self.history:
            self.history[-1]["image_url"] = url
        shown = url if not url.startswith("data:") else f"{url[:48]}... ({len(url)} chars)"
        console.print(f"🖼️  {shown}", style="green")
        return url

    def hover(self, target: str):
        """Focus a story token by index, or the first occurrence of a word"""
        spans = self.session.render_story()
        span = None
        if target.isdigit():
            span = next((s for s in spans if s.index == int(target) and s.interactive), None)
        else:
            word = normalize(target)
            span = next((s for s in spans if s.word == word), None)

        if span is None:
            console.print(f"No word '{target}' in the story.", style="yellow")
            return
        self.session.hover(span.text, span.index)
        self.show_story()

    def define(self, word: str):
        entry = self.dictionary.define(word)
        style = "green" if not entry.is_sentinel else "yellow"
        console.print(Panel(
            f"[italic]{entry.part_of_speech}[/italic]\n{entry.definition}",
            title=f"📖 {normalize(word)}",
            border_style=style
        ))

    def export_history(self, output_path: str, format: str = "json"):
        """Export generated stories to file"""
        if not self.history:
            console.print("No stories to export", style="yellow")
            return

        try:
            output_path = Path(output_path)

            if format == "json":
                with open(output_path, 'w', encoding='utf-8') as f:
                    json.dump(self.history, f, indent=2, ensure_ascii=False)

            elif format == "markdown":
                with open(output_path, 'w', encoding='utf-8') as f:
                    f.write("# Vocora Stories\n\n")
                    for entry in self.history:
                        f.write(f"## {entry['timestamp']}\n\n")
                        f.write(f"**Words:** {', '.join(entry['words'])}\n\n")
                        f.write(f"{entry['story']}\n\n")
                        if entry.get("image_url") and not entry["image_url"].startswith("data:"):
                            f.write(f"![illustration]({entry['image_url']})\n\n")
                        f.write("---\n\n")

            console.print(f"✅ Exported stories to {output_path}", style="green")

        except OSError as e:
            console.print(f"❌ Export failed: {str(e)}", style="red")

    def interactive_mode(self):
        """Run interactive practice mode"""
        console.print(Panel(
            "[bold cyan]Vocora Practice Mode[/bold cyan]\n"
            "Type a command (/help for the list).",
            title="🦉 Welcome to Vocora",
            border_style="cyan"
        ))

        while True:
            try:
                line = console.input("\n[bold cyan]vocora>[/bold cyan] ")
                if line.strip():
                    self._handle_command(line.strip())

            except (KeyboardInterrupt, EOFError):
                self.session.close()
                console.print("\n👋 Goodbye!", style="yellow")
                break

    def _handle_command(self, command: str):
        """Handle interactive commands"""
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if cmd == "/exit":
            self.session.close()
            console.print("👋 Goodbye!", style="yellow")
            sys.exit(0)

        elif cmd == "/help":
            help_text = """
[bold]Available Commands:[/bold]
  /words           - Show your word list
  /select <words>  - Select words for the next story
  /deselect <word> - Remove a word from the selection
  /story [words]   - Generate a story from the selection (or the given words)
  /all             - Generate a story using every word on your list
  /show [known]    - Show the story (highlight your list with 'known')
  /hover <n|word>  - Focus a story word and show its definition
  /leave           - Clear the focus
  /add [word]      - Add a word (or the focused word) to your list
  /define <word>   - Look up a word
  /image           - Illustrate the current story
  /export <file>   - Export stories (.json or .md)
  /exit            - Exit
            """
            console.print(Panel(help_text, title="Help", border_style="green"))

        elif cmd == "/words":
            self.show_words()

        elif cmd == "/select" and arg:
            for word in arg.replace(",", " ").split():
                self.session.select(word)
            console.print(f"Selected: {', '.join(self.session.selected)}", style="cyan")

        elif cmd == "/deselect" and arg:
            self.session.deselect(arg)
            console.print(f"Selected: {', '.join(self.session.selected) or '(none)'}", style="cyan")

        elif cmd == "/story":
            words = arg.replace(",", " ").split() if arg else None
            self.generate(words)

        elif cmd == "/all":
            self.generate(practice_all=True)

        elif cmd == "/show":
            self.show_story("known" if arg == "known" else "selected")

        elif cmd == "/hover" and arg:
            self.hover(arg)

        elif cmd == "/leave":
            focus = self.session.annotator.focus
            if focus:
                self.session.leave(focus.word, focus.index)
            self.show_story()

        elif cmd == "/add":
            added = self.session.add_word(arg) if arg else self.session.add_focused_word()
            if added:
                console.print(f"✅ Added. {len(self.session.words)} words on your list.", style="green")
            elif self.session.message:
                self._report()
            else:
                console.print("Nothing to add (already on your list?)", style="yellow")

        elif cmd == "/define" and arg:
            self.define(arg)

        elif cmd == "/image":
            self.illustrate()

        elif cmd == "/export" and arg:
            format = "markdown" if arg.endswith('.md') else "json"
            self.export_history(arg, format)

        else:
            console.print(f"Unknown command: {cmd}", style="red")


def main():
    parser = argparse.ArgumentParser(
        description="Vocora - vocabulary practice with generated stories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  vocora

  # Story from chosen words
  vocora --words apple run river

  # Story from your whole list, with an illustration
  vocora --all --image

  # Look up a word
  vocora --define serendipity
        """
    )

    parser.add_argument(
        "--words", "-w",
        nargs="+",
        help="Words to build a story from"
    )

    parser.add_argument(
        "--all", "-a",
        action="store_true",
        help="Build a story from every word on your list"
    )

    parser.add_argument(
        "--image", "-i",
        action="store_true",
        help="Illustrate the generated story"
    )

    parser.add_argument(
        "--define", "-d",
        help="Look up a word"
    )

    parser.add_argument(
        "--add",
        nargs="+",
        help="Add words to your list"
    )

    parser.add_argument(
        "--user", "-u",
        help="User id owning the word list (default: shared list)"
    )

    parser.add_argument(
        "--config", "-c",
        help="YAML configuration file"
    )

    parser.add_argument(
        "--export", "-e",
        help="Export stories to file (.json or .md)"
    )

    args = parser.parse_args()

    config = VocoraConfig.load_from_file(args.config) if args.config else VocoraConfig()
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")

    cli = VocoraCLI(config, user_id=args.user)
    cli.session.load_words()
    cli._report()

    if args.add:
        for word in args.add:
            cli._handle_command(f"/add {word}")

    if args.define:
        cli.define(args.define)

    if args.words or args.all:
        story = cli.generate(args.words, practice_all=args.all)
        if story and args.image:
            cli.illustrate()
        if args.export:
            format = "markdown" if args.export.endswith('.md') else "json"
            cli.export_history(args.export, format)

    # Enter interactive mode if no specific action
    elif not any([args.define, args.add]):
        cli.interactive_mode()


if __name__ == "__main__":
    main()
