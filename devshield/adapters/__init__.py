"""Scanner adapters for the semgrep, tfsec and trivy command-line tools."""