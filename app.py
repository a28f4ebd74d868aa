import os

from inksynth.logging_setup import setup_logging
from inksynth.server import create_app

setup_logging()

# Settings come from the environment (.env is loaded by inksynth.config).
# A missing GEMINI_API_KEY raises ConfigurationError here, before serving.
app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    app.run(debug=False, host="0.0.0.0", port=port)
