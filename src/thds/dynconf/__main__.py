from .tools.show import main

if __name__ == "__main__":
    main()
