"""Client constants and terminal styling."""

from prompt_toolkit.styles import Style

COMMANDS = ["sync", "list", "store", "delete", "get", "clear", "exit", "help"]

FILE_COMMANDS = ("store", "delete", "get")

STYLE = Style.from_dict(
    {
        "prompt": "#3FA7D6 bold",
    }
)

WELCOME_TITLE = "LiftSync - timestamp-based folder sync"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "liftsync> "

HELP_TEXT = """Available commands:
  sync                 Reconcile the local folder with the server now
  list                 Show the files stored on the server
  store <filename>     Upload a local file to the server
  get <filename>       Download a file from the server
  delete <filename>    Delete a file on the server
  clear                Clear screen and redisplay welcome message
  help                 Show this help
  exit                 Exit

A sync also runs automatically on a fixed interval.
Command names are case-insensitive.
Examples:
  list
  store notes.txt
  get report.pdf
  delete old.csv"""
