import sys

from letter_quiz.bot import main

if __name__ == "__main__":
    sys.exit(main())
