from url_sentry.monitor import main

if __name__ == "__main__":
    main()
