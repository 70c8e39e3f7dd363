from llmgrep.cli import main

main()
