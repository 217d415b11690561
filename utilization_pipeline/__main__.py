from utilization_pipeline.pipeline import main

main()
