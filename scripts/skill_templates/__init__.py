"""Starting skill packages copied by scaffold_skill.py, one directory per template."""
