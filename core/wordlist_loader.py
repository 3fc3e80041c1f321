"""Utility module for loading wordlists from YAML and plain-text files."""
import os
import yaml
from typing import Dict, List

WORDLISTS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "wordlists")
DEFAULT_WORDLIST_FILE = "common.yaml"


def load_groups(wordlist_file: str = os.path.join(WORDLISTS_DIR, DEFAULT_WORDLIST_FILE)) -> Dict[str, List[str]]:
    """
    Load every wordlist group from a YAML file.

    Args:
        wordlist_file: Path to a YAML mapping of group name -> list of paths

    Returns:
        Dictionary of group name to path list (empty if the file is missing)
    """
    if not os.path.exists(wordlist_file):
        return {}

    with open(wordlist_file, 'r') as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        return {}
    return {str(name): [str(p) for p in (paths or [])] for name, paths in data.items()}


def available_groups() -> List[str]:
    return sorted(load_groups())


def load_wordlist(group: str = "common") -> List[str]:
    """
    Load a built-in wordlist group.

    Raises:
        KeyError: if the group does not exist
    """
    groups = load_groups()
    if group not in groups:
        raise KeyError(f"Unknown wordlist group: {group} (available: {', '.join(sorted(groups))})")
    return groups[group]


def load_wordlist_file(path: str) -> List[str]:
    """Read one path per line, skipping blanks and '#' comments."""
    words: List[str] = []
    with open(path, 'r') as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                words.append(line)
    return words
