import argparse
import threading
from pathlib import Path

from duplex_speech import DuplexUploader, RecognitionResult, SpeechPipeline
from duplex_speech.config import create_example_env_file, load_config, setup_logging


def print_result(result: RecognitionResult):
    marker = "" if result.is_final else " (interim)"
    print(f"> {result.transcript} [{result.confidence}]{marker}")
    for alternative in result.alternatives:
        print(f"    alt: {alternative}")


def main():
    parser = argparse.ArgumentParser(description="Full-duplex streaming speech recognition")
    parser.add_argument("--config", type=str, help="Path to config file", default=".env")
    parser.add_argument("--create-config", action="store_true", help="Create example config file")
    parser.add_argument("--file", type=str, help="Recognize a FLAC file instead of the microphone")
    parser.add_argument("--rate", type=int, default=None, help="Sample rate of --file (defaults to SAMPLE_RATE)")

    args = parser.parse_args()

    if args.create_config:
        create_example_env_file()
        print("Example configuration file created at .env.example")
        print("Please copy it to .env and fill in your API key.")
        return

    try:
        config = load_config(Path(args.config) if args.config else None)
        setup_logging(config.log_level)

        if args.file:
            uploader = DuplexUploader(
                api_key=config.api_key,
                language=config.language,
                base_url=config.base_url,
                pacing_s=config.chunk_pacing_s,
                min_response_length=config.min_response_length,
                connect_timeout_s=config.request_timeout_s,
            )
            uploader.add_response_listener(print_result)
            call = uploader.recognize_file(args.file, args.rate or config.sample_rate)
            call.join()
            for error in call.errors:
                print(f"Error: {error}")
            return

        pipeline = SpeechPipeline(config, listener=print_result)
        pipeline.start()
        print("Listening... press Ctrl+C to stop.")
        try:
            threading.Event().wait()
        finally:
            pipeline.stop()

    except FileNotFoundError as e:
        print(f"File not found: {e}")
    except ValueError as e:
        print(f"Configuration error: {e}")
        print("Run with --create-config to create an example configuration file.")
    except KeyboardInterrupt:
        print("\nGoodbye!")


if __name__ == "__main__":
    main()
