"""Report writers for scan results (SARIF, JSON, HTML) and a function that writes them all."""