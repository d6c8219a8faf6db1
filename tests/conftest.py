import sys
from pathlib import Path

# Project modules live at the repository root
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))
