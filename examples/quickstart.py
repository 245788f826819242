# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import sys
import logging
from pathlib import Path

# Add src to PYTHONPATH for local runs
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from table_loader import TableLoader
from table_loader.core.errors import RetryExhaustedError, TableLoaderError


entered = input("Enter a table or OData collection URL (e.g. https://account.table.core.windows.net/Customers()): ").strip()
if not entered:
	print("No URL entered; exiting.")
	sys.exit(1)

token = input("Optional SAS query string or blank: ").strip().lstrip("?")
url = f"{entered}?{token}" if token else entered

verbose = (input("Show request logging? (y/N): ").strip() or "n").lower() in ("y", "yes", "true", "1")
logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

loader = TableLoader(retry_count=3, retry_delay=500)

print("\n1) Page by page")
try:
	for page in loader.pages(url):
		print({"page": page.page_number, "records": len(page.records), "has_more": page.has_more})
except TableLoaderError as ex:
	print(f"Paging stopped: {ex.to_dict()}")

print("\n2) Everything at once, with callbacks")
try:
	rows = loader.load(
		url,
		on_success=lambda records: print(f"Loaded {len(records)} record(s)"),
		on_error=lambda err: print(f"Load failed: {err}"),
		on_finally=lambda: print("Load finished"),
	)
except RetryExhaustedError as ex:
	print({"attempts": len(ex.attempts), "last_error": ex.last_error.to_dict()})
	sys.exit(1)

print("\n3) As a DataFrame")
result = loader.try_load(url)
if result.ok:
	df = loader.load_dataframe(url)
	print(df.head())
	print(result.to_dict())
else:
	print(result.error.to_dict())
