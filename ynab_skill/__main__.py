from ynab_skill.server import main

main()
