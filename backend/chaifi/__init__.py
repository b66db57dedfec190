"""
Chai-Fi POS backend: sale ingestion and rolling daily/weekly/monthly summaries.
"""
