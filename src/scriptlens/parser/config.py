import re

# Script file extension appended to imports declared without one
SCRIPT_EXTENSION = ".cs"

# //css_<name> <value>[;]
DIRECTIVE_RE = re.compile(r"^[ \t]*//css_([A-Za-z_]+)\b[ \t]*(.*?)[ \t]*;?[ \t]*$", re.MULTILINE)

# using A.B;  /  global using A.B;  (aliases and `using static` are not namespaces to resolve)
USING_RE = re.compile(r"^[ \t]*(?:global\s+)?using\s+(?!static\b)([A-Za-z_][A-Za-z0-9_.]*)\s*;", re.MULTILINE)

BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

RENAME_NAMESPACE_RE = re.compile(r"rename_namespace\s*\(\s*([A-Za-z0-9_.]+)\s*,\s*([A-Za-z0-9_.]+)\s*\)")

AUTOCLASS_RE = re.compile(r"\s?//css_args\s+/ac(,|\s+)")

# Directive spellings grouped by meaning
DIRECTIVE_ALIASES = {
    "reference": "reference",
    "ref": "reference",
    "r": "reference",
    "import": "import",
    "imp": "import",
    "include": "import",
    "inc": "import",
    "searchdir": "searchdir",
    "dir": "searchdir",
    "nuget": "nuget",
    "ignore_namespace": "ignore_namespace",
    "ignore_ns": "ignore_namespace",
    "args": "args",
}

# Namespaces that are implicitly available to every script and never looked up on disk
DEFAULT_IGNORE_NAMESPACES = (
    "System",
    "System.Collections",
    "System.Collections.Generic",
    "System.Core",
    "System.IO",
    "System.Linq",
    "System.Text",
    "System.Threading",
    "System.Threading.Tasks",
)
