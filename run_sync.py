"""
Tenant config sync runner.
Takes no arguments: the repository URL, stage and secret names come from the
environment, envs/ dotenv files and configs/config.json.
"""
from branch_sync.entrypoints import handle


def main():
    handle()


if __name__ == "__main__":
    main()
