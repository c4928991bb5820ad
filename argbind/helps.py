"""
argbind help rendering.

render() turns one Command of a built tree into a rich renderable. It only reads the
tree; nothing here is consulted while parsing.

Layout
- usage line: route, "[options]", positional metavars decorated by arity, "<command>"
  when the command has children.
- description, options table (switch spellings, metavar or {choices}, description,
  plus the help spellings), positionals table, subcommands table, epilog.
"""
import inspect
from collections import defaultdict

from rich import box
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


def render(parser, command, ancestors=(), /, *, colorful=None, fancy=None):
    """
    Build the help renderable for command.

    Palette keys
    - usage-label, program-name, usage-section, description-section, epilog-section
    - group-label, argument-description
    - option-name, flag-name, metavar, greedy-metavar, choice
    - children-title, children-table, children, children-description
    - panel-title

    Customization
    - a __styles__ mapping in __main__ overrides palette entries.
    - colorful / fancy default to the parser flags; without colorful no style is applied.
    """
    colorful = parser.colorful if colorful is None else colorful
    fancy = parser.fancy if fancy is None else fancy
    messages = parser.messages

    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "usage-section": "bold #36C5F0",
        "description-section": "italic #A3A3A3",
        "epilog-section": "#737373",

        "group-label": "bold #FFFFFF",
        "argument-description": "#9CA3AF",

        "option-name": "bold #00E6FF",
        "flag-name": "bold #22C55E",
        "metavar": "bold #FFD600",
        "greedy-metavar": "bold italic #FFD600",
        "choice": "bold #FF4D94",

        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",

        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    def names(argument):
        style = "flag-name" if argument.nargs == 0 else "option-name"
        return Text(", ").join(text(spelling, styler(style)) for spelling in argument.switches)

    def metavar(argument, *, simple=False):
        if argument.choices:
            label = Text.assemble(
                "{", Text(",").join(text(choice, styler("choice")) for choice in map(repr, argument.choices)), "}"
            )
        else:
            style = "greedy-metavar" if argument.unbounded else "metavar"
            label = argument.metavar or "<%s>" % (argument.name or argument.dest.replace("_", "-"))
            label = text(label, styler(style))

        if simple:
            return label

        match argument.nargs:
            case 0:
                return Text("")
            case "?":
                return Text.assemble("[", label, "]")
            case "*":
                return Text.assemble("[", label, " ...]")
            case "+":
                return Text.assemble(label, " [", label, " ...]")
            case int(count):
                return Text(" ").join(label.copy() for _ in range(count))
        return label

    renders = []
    chain = (*ancestors, command) if ancestors else command.path

    usage = Text()
    usage.append(text(messages.usage, styler("usage-label"))).append(": ")
    usage.append(text(" ".join(step.name for step in chain), styler("program-name")))
    usage.append(" [options]")
    for argument in command.positionals:
        usage.append(" ").append(metavar(argument))
    if command.children:
        usage.append(" <command>")
    renders.append(usage.append("\n"))

    if command.descr:
        renders.append(text(command.descr, styler("description-section")).append("\n"))

    options = Table.grid(padding=(0, 2))
    options.add_column(no_wrap=True)
    options.add_column()
    for argument in command.switches:
        signature = names(argument)
        if argument.nargs != 0:
            signature.append(" ").append(metavar(argument))
        options.add_row(Text("  ") + signature, text(argument.descr, styler("argument-description")))
    options.add_row(
        Text("  ") + Text(", ").join(text(spelling, styler("flag-name")) for spelling in parser.helpers),
        text(messages.help_description, styler("argument-description")),
    )
    renders.append(Group(text(messages.options, styler("group-label")).append(":"), options, Text("")))

    if command.positionals:
        positionals = Table.grid(padding=(0, 2))
        positionals.add_column(no_wrap=True)
        positionals.add_column()
        for argument in command.positionals:
            positionals.add_row(
                Text("  ") + metavar(argument, simple=True),
                text(argument.descr, styler("argument-description")),
            )
        renders.append(Group(text(messages.positionals, styler("group-label")).append(":"), positionals, Text("")))

    if command.children:
        table = Table(
            "name", "help",
            title=text(messages.subcommands, styler("children-title")),
            box=box.ROUNDED,
            style=styler("children-table"),
            header_style=styler("children-title"),
        )
        for name, child in command.children.items():
            descr = child.descr or (inspect.getdoc(child.callback) if child.callback else None)
            if descr:
                help = text(descr, styler("children-description"))
            else:
                help = text("run '%s %s' for details" % (child.route, parser.helper), styler("children-description"))
            table.add_row(text(name, styler("children")), help)
        renders.append(table)

    if command.epilog:
        renders.append(text(command.epilog, styler("epilog-section")))

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", f"{command.route} help".upper(), " ]", style=styler("panel-title")),
            title_align="left",
        )
    return renderable


__all__ = (
    "render",
)
