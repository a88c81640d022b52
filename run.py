from archive_resolver.main import run

# Run the resolver service
if __name__ == "__main__":
    run()
