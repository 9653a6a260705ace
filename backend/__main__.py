from backend.main import run

if __name__ == "__main__":
    run()
