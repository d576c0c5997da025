"""CLI shim -- delegates to pdfconvert.cli.main().

Usage:
    python convert_pdfs.py ./inbox --output-dir ./converted
    python convert_pdfs.py scan.pdf
"""

import sys

from pdfconvert.cli import main

if __name__ == "__main__":
    sys.exit(main())
