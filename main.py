from rich.pretty import pprint

from argbind import *


class Tool:
    verbose: bool = False
    jobs: int = 1


class Clone:
    verbose: bool = False
    no_checkout: bool = False
    depth: int = 0
    timeout: Duration = Duration(30 * Duration.SECOND)
    repository: str = ""
    directory: str = ""


def clone(command, values):
    pprint(values.__dict__)


parser = ArgumentParser(Command("tool", values=Tool(), descr="demo tool"), shell=True, colorful=True)
parser.add(Argument("-v", "--verbose", inherit=True, descr="print more details"))
parser.add(Argument("-j", "--jobs", descr="parallel jobs"))

command = parser.command(clone, values=Clone(), descr="clone a repository")
command.add(Argument("-n", "--no-checkout", descr="skip the checkout"))
command.add(Argument("--depth", metavar="N", descr="history depth"))
command.add(Argument("--timeout", descr="network timeout"))
command.add(Argument(name="repository", descr="source repository"))
command.add(Argument(name="directory", nargs="?", descr="target directory"))


if __name__ == '__main__':
    invoke(parser)
