"""Extension descriptor read by the host's extension registry"""

from typing import Dict

__version__ = "1.0"

NAME = "PowerContent"
AUTHOR = "SD / NXC International SA"
COPYRIGHT = 'Copyright &copy; 2010 <a href="http://nxc.no" target="blank">NXC Consulting</a>'


def info() -> Dict[str, str]:
    return {
        "Name": NAME,
        "Version": __version__,
        "Author": AUTHOR,
        "Copyright": COPYRIGHT,
    }
