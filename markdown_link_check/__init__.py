"""Dead-link checks for the markdown files of a pull request."""
