# example.py
# A small example demonstrating how to use the refcheck library
# to check every link in a folder of generated HTML.

import asyncio
import logging
import sys

from refcheck import Level, check_site

# --- Configuration ---
# You can enable logging to see which links are checked and why.
# This is helpful for debugging.
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

# The output folder of your static site generator.
SITE_DIR = sys.argv[1] if len(sys.argv) > 1 else "_site"


async def main():
    """
    Main function to run the check and print the results.
    """
    print(f"[*] Checking links in: {SITE_DIR}\n")

    # This is the primary API call. It handles everything:
    # - Finding every .html file below SITE_DIR.
    # - Resolving internal links against the files on disk.
    # - Probing each distinct external URL once.
    # - Sanity-checking mailto: and tel: links.
    # The function returns a single `Report` object.
    report = await check_site(SITE_DIR, enforce_https=True)

    print("\n--- CHECK COMPLETE ---")
    print(
        f"{report.references} links in {report.documents} documents, "
        f"{report.probes} HTTP requests ({report.cache_hits} answered from cache)"
    )

    errors = [i for i in report.issues if i.level >= Level.ERROR]
    if not errors:
        print("\n[+] No broken links found.")
        return 0

    print("\n[!] Problems:")
    for issue in errors:
        where = issue.owner.path if issue.owner else "-"
        href = issue.reference.href if issue.reference else ""
        print(f"  - {where}: {issue.message} {href}")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
